"""Structure-preserving translation of structured content trees."""

__version__ = "0.3.0"
