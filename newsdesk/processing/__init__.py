"""
Newsdesk Processing Module
==========================

Pipeline steps: RSS fetch, pre-moderation, article analysis, rewriting,
Telegram dispatch, source monitoring and stale news rejection.
"""
