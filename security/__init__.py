"""
Security Package
API credential handling
"""
