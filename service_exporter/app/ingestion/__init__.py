"""
Ingestion: status catalog, paginated issue fetching and time-in-status
aggregation.
"""
