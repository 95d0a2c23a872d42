"""
Speech client session controller.

Owns OAuth sign-in, first-party session tokens and the authenticated HTTP
pipeline shared by every screen of the client.
"""

__version__ = "0.1.0"
