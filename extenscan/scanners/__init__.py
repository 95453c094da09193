"""Inventory scanners — one per installation source."""
