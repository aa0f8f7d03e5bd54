"""
Core Package
Transaction ledger, personal P&L and the analyzer engine
"""
