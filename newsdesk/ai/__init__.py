"""
Newsdesk AI Module
==================

Azure OpenAI integration for moderation, analysis and rewriting.
"""
