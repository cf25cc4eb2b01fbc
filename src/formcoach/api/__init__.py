"""
HTTP service exposing the form analysis engine.
"""

from .server import create_app
from .sessions import SessionRegistry

__all__ = ['create_app', 'SessionRegistry']
