"""
Configuration Package
"""
