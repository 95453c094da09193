"""extenscan — inventory installed extensions and packages and score their risk."""

__version__ = "0.4.0"
