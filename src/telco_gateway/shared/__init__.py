"""
Shared infrastructure: logging, database sessions, exception taxonomy.
"""
