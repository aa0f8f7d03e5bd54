"""
Typed Exception Classes for RugPlay Market Analyzer

This module provides specific exception types so callers can tell a missing
credential from a transport failure, and a bad import from a storage fault.
Insufficient market data is never an exception: analyzers degrade to UNKNOWN.
"""


# ============================================================================
# Network & API Exceptions
# ============================================================================

class NetworkError(Exception):
    """Base exception for network-related errors"""
    pass


class AuthorizationError(NetworkError):
    """API rejected the credential (401/403)"""
    pass


class APIRateLimitError(NetworkError):
    """API rate limit exceeded"""
    pass


class MissingCredentialError(Exception):
    """No API key is configured; the data source cannot be called"""
    pass


# ============================================================================
# Configuration & Validation Exceptions
# ============================================================================

class ConfigurationError(Exception):
    """Configuration validation errors"""
    pass


class ValidationError(Exception):
    """Data validation errors"""
    pass


class MalformedImportError(ValidationError):
    """Imported ledger snapshot is not valid JSON or has the wrong shape"""
    pass


# ============================================================================
# Storage Exceptions
# ============================================================================

class StorageError(Exception):
    """Key-value store read/write errors"""
    pass
