"""HTTP search front-end for Hugo sites backed by a tantivy full-text index."""

__version__ = "0.3.0"
