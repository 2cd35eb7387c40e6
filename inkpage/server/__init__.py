"""
Annotation API server.

Authoritative side of the one-record-per-page persistence contract.
"""

from .app import create_app, get_current_user

__all__ = ["create_app", "get_current_user"]
