"""
API Credential Store for RugPlay Market Analyzer

The data-source API key is an opaque bearer token. It is looked up in two
places, in order:

1. The key-value store (saved with `save_api_key`)
2. Environment variable (RUGPLAY_API_KEY, typically from .env)

Usage:
    from security.secrets_manager import CredentialStore

    credentials = CredentialStore(store)
    if credentials.has_api_key():
        api_key = credentials.get_api_key()
"""

import logging
import os
from typing import Optional

from data.storage.kv_store import KeyValueStore
from utils.constants import API_KEY_ENV_VAR, API_KEY_STORAGE_KEY
from utils.errors import ValidationError

logger = logging.getLogger(__name__)


class CredentialStore:
    """
    Holds the API key. The key itself is never logged; use `masked()` for
    display.
    """

    def __init__(
        self,
        store: KeyValueStore,
        env_var: str = API_KEY_ENV_VAR,
        storage_key: str = API_KEY_STORAGE_KEY
    ):
        self.store = store
        self.env_var = env_var
        self.storage_key = storage_key

    def get_api_key(self) -> Optional[str]:
        """Stored key first, then the environment; None if neither is set"""
        value = self.store.get(self.storage_key)
        if value:
            return str(value)

        value = os.getenv(self.env_var, '').strip()
        if value:
            logger.debug(f"API key loaded from environment ({self.env_var})")
            return value
        return None

    def save_api_key(self, api_key: str) -> None:
        api_key = (api_key or '').strip()
        if not api_key:
            raise ValidationError("API key cannot be empty")

        self.store.set(self.storage_key, api_key)
        logger.info(f"API key saved: {self._mask_value(api_key)}")

    def clear_api_key(self) -> None:
        self.store.delete(self.storage_key)
        logger.info("API key cleared")

    def has_api_key(self) -> bool:
        return self.get_api_key() is not None

    def masked(self) -> str:
        """Masked key for display, or an empty string when none is set"""
        api_key = self.get_api_key()
        return self._mask_value(api_key) if api_key else ''

    @staticmethod
    def _mask_value(value: str, visible_chars: int = 4) -> str:
        """Mask a sensitive value for logging"""
        if not value or len(value) <= visible_chars * 2:
            return '****'
        return value[:visible_chars] + '****' + value[-visible_chars:]
