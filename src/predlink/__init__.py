"""predlink: link bot predictions to live fixtures and settle them."""

__version__ = "0.1.0"
