"""Long-form text expansion pipeline."""

__version__ = "0.1.0"
