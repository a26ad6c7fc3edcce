"""Server-side rendering gateway with an authenticated content proxy."""

__version__ = "1.0.0"
