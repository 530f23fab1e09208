"""Shared utilities: exceptions, logging, validation and slugs."""
