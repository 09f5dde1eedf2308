"""Repository chunking and use-case tagging for retrieval augmented generation."""

__version__ = "1.0.0"
