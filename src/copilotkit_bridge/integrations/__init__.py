"""Integrations with external model providers."""
