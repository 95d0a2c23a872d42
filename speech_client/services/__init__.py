"""
Client services.
"""
