"""Adapters implementing the core ports (storage, console output)."""
