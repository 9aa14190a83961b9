"""Word lookup and question answering with a locally cached word collection."""

__version__ = "0.1.0"

__all__ = ["__version__"]
