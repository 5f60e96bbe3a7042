"""
Infrastructure Layer

Contains:
- github: GitHub search transport and resilient gateway
- cache: In-memory result cache
"""
