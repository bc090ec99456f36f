"""CSV import engine: header mapping, transformation, validation and review."""

__version__ = "0.1.0"
