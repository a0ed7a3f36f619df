"""Build and release orchestration for PowerShell modules."""

__version__ = "0.1.0"
