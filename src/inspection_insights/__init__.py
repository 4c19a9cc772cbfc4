"""Analytics engine for inspection report collections."""

__version__ = "0.1.0"
