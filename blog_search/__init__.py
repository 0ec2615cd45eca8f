"""Blog article search and recommendation backend."""

__version__ = "1.0.0"
