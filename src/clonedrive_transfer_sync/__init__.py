"""Client-side synchronization engine for CloneDrive transfer jobs."""

__version__ = "0.1.0"

__all__ = ["__version__"]
