"""
Infrastructure Layer - External Dependencies

Contains:
- cache: bounded result-page cache (cachetools)
- http: default Fetcher over httpx
- sources: photo API clients (Unsplash)
- storage: key/value persistence
"""
