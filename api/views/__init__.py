"""
API views for the category admin backend.
"""

from .categories import *  # noqa: F401,F403
