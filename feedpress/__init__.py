"""feedpress - multi-tenant RSS cache and newsletter article preparation."""

__version__ = "0.1.0"
