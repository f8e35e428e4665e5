"""
Marketplace Listing Search
Filtered, ranked and faceted listing search over PostgreSQL with pg_trgm.
"""

__version__ = "0.1.0"
