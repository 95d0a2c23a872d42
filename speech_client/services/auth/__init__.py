"""
Authentication services: provider sign-in and session exchange.
"""
