"""Adapters for the external services behind the interfaces package."""
