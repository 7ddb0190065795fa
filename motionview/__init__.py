"""Motion-event archive viewer."""

__version__ = "1.0.0"
