"""HTTP API exposing the pipeline operations."""
