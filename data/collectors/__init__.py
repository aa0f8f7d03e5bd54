"""
Data Collectors
"""
