"""
Data Package
Market data models, collection, normalization and storage
"""
