"""Media asset catalog: staged uploads, shared store, previews, filtering and deletion."""

__version__ = "1.0.0"
