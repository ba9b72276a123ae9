"""Adapters for HTTP, storage, events, configuration and logging."""
