# File: neoscout/crawler/__init__.py
"""neoscout.crawler: URL model, classification, link extraction, HTTP fetching and the bounded crawl."""
