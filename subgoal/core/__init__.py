"""Core infrastructure: configuration, logging, database and DI helpers."""
