from abc import ABC, abstractmethod

# fixed key of the knowledge-service API key in durable local storage
API_KEY_STORAGE_KEY = "elevenlabs_api_key"


class CredentialStoreInterface(ABC):
    """Durable key/value storage for client-side secrets."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key was never set."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Persist a value, overwriting any previous one."""
        pass
