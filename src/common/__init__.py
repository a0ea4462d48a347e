"""Shared helpers: logging and HTTP."""
