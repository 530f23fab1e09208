"""
Newsdesk Social Module
======================

Video and article cross-posting to LinkedIn, Facebook and YouTube.
"""
