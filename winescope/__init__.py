"""
WineScope crawler.

Fetches Wine-Searcher pages through curl-impersonate and extracts
wine, rating and price data from the returned HTML.
"""
__version__ = "0.1.0"
