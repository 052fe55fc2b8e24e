"""transgif: render slide transitions into looping animated GIFs."""

__version__ = "0.1.0"
