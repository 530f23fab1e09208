"""
Newsdesk Ingestion Module
=========================

RSS feed fetching, parsing and full-article extraction.
"""
