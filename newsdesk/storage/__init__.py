"""
Newsdesk Storage Layer
======================

Repository pattern implementations for data access abstraction.

This module provides:
- News repository for news CRUD and moderation state
- Source repository for RSS source management
- Prompt and settings repositories for runtime configuration
- Social post, blog and contact form repositories
"""
