"""
Utility Package
Constants, errors and helper functions
"""
