"""Resize images and re-encode them to a quality level or a size budget."""

__version__ = "0.1.0"
