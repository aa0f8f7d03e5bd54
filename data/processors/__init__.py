"""
Data Processors
"""
