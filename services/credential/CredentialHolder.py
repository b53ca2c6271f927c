"""Holds the user's knowledge-service API key."""

from typing import Callable

from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import register_secret
from shared.storage.CredentialStoreInterface import API_KEY_STORAGE_KEY, CredentialStoreInterface

CredentialListener = Callable[[str], None]


class CredentialHolder:
    """Owns the API key, persists it, and tells dependents when it changes.

    There is no remote validation here: an invalid key only shows up when a
    dependent request fails.
    """

    def __init__(self, helper_config: HelperConfig, store: CredentialStoreInterface, storage_key: str = API_KEY_STORAGE_KEY):
        self.logging = helper_config.get_logger()
        self._store = store
        self._storage_key = storage_key
        self._api_key: str = ""
        self._listeners: list[CredentialListener] = []

    @property
    def api_key(self) -> str:
        return self._api_key

    @property
    def is_set(self) -> bool:
        return bool(self._api_key)

    def subscribe(self, listener: CredentialListener) -> None:
        """Register a callback invoked synchronously with every new key."""
        self._listeners.append(listener)

    def load(self) -> str | None:
        """Read the persisted key at startup.

        Returns:
            str | None: The loaded key, None if nothing is stored.
        """
        stored = self._store.get(self._storage_key)
        if not stored:
            self.logging.info("No stored API key found.")
            return None
        self._set(stored)
        self.logging.info("Loaded stored API key.")
        return stored

    def submit(self, value: str | None) -> bool:
        """Persist and activate a new key.

        Args:
            value (str | None): The raw user input.

        Returns:
            bool: False if the trimmed value was empty and nothing happened.
        """
        key = (value or "").strip()
        if not key:
            return False
        self._store.set(self._storage_key, key)
        self._set(key)
        self.logging.info("API key updated.")
        return True

    def _set(self, key: str) -> None:
        register_secret(key)
        self._api_key = key
        for listener in self._listeners:
            listener(key)
