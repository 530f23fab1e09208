"""SQLite database layer: connection management, schema and models."""
