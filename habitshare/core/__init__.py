"""Core infrastructure: configuration, logging, errors, dates and records."""
