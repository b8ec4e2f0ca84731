"""Shared node base types."""
