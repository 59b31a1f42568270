"""Shared helpers: HTTP transport, logging, host rules."""
