"""ZotMirror - mirror Zotero group libraries into a relational database."""

__version__ = "0.3.0"

__all__ = ["__version__"]
