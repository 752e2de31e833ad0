"""Serialization and DocumentStore adapters."""
