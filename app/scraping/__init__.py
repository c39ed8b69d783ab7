"""
Browser scraping of dashboard views.
"""
