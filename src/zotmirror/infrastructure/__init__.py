"""Adapters for external systems: HTTP, SQLite, object storage, PDF rendering."""
