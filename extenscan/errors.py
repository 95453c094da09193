"""Exceptions surfaced to the user."""

from __future__ import annotations

import click


class ExtenscanError(click.ClickException):
    """A user-facing failure; click prints ``Error: <message>`` and exits 1."""

    exit_code = 1
