"""
Listing Search API
FastAPI application serving GET /api/search.
"""
