"""Build-time index builder and runtime query engine for static documentation sites."""

__version__ = "0.1.0"
