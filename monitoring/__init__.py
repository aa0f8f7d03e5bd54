"""
Monitoring Package
Logging setup
"""
