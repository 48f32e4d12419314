"""addin-compat: binary compatibility gate for IDE extensions."""

__version__ = "0.3.0"
