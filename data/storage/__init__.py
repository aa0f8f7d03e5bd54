"""
Key-value storage backends
"""
