"""Elliott Wave annotation & validation engine."""

__version__ = "0.2.0"
