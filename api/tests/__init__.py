"""
Test package for API endpoints.
"""
