"""Position management against a Compound-style money market."""

__version__ = "0.1.0"
