"""
Domain layer for the speech client.
"""
