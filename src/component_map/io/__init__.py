"""Adapters for the external status services."""
