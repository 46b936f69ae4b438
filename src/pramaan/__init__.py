"""PRAMAAN — trust score engine for a verified-talent marketplace."""

__version__ = "0.1.0"
