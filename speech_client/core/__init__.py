"""
Core configuration, logging and error primitives.
"""
