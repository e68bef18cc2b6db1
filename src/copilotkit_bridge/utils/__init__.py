"""Shared utilities: logging, JSON helpers and client construction."""
