"""
Application Layer - Use cases orchestrating domain and infrastructure.

Contains:
- search: Popularity scoring, aggregation pipeline and service
"""
