"""Configuration management for Newsdesk."""
