"""Generic async CRUD repositories over SQLAlchemy models."""

__version__ = "0.1.0"
