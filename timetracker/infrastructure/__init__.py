"""
Infrastructure layer.
Database, cache, ticket system clients and the web interface.
"""
