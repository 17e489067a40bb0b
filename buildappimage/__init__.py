"""Build a Python desktop application into a self-contained Linux AppImage."""

__version__ = "0.3.0"
