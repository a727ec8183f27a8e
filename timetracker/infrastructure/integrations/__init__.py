"""
Integrations with external ticket systems.
"""
