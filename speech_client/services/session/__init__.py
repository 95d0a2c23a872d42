"""
Session services: token persistence, session state, invalidation and
startup bootstrap.
"""
