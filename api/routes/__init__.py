"""
API routes package for Statecheck.
"""
from api.routes import comparison

__all__ = ["comparison"]
