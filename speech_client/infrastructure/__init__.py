"""
Infrastructure adapters: local storage and HTTP transport.
"""
