"""End-to-end harness for installing and exercising Velero."""

__version__ = "0.1.0"
