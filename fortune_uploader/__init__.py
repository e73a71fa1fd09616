"""Native photo pick-and-upload pipeline for Fortune Magnet."""

__version__ = "1.0.0"
