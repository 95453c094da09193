"""Online lookups — OSV advisories and registry versions."""
