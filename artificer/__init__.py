"""Artificer — generate, store, retrieve and run model-authored tools."""

__version__ = "0.1.0"
