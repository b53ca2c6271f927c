import json
import os

from shared.helper.HelperConfig import HelperConfig
from shared.storage.CredentialStoreInterface import CredentialStoreInterface


class CredentialStoreFile(CredentialStoreInterface):
    """Stores values in a single JSON object on disk.

    The file is read once on construction; every set() rewrites it atomically.
    """

    def __init__(self, helper_config: HelperConfig, path: str | None = None):
        self.logging = helper_config.get_logger()
        self._path = path or helper_config.get_path_val(
            "CREDENTIAL_STORE_PATH", default=os.path.join("data", "local_storage.json")
        )
        self._values: dict[str, str] = self._read()

    def get_path(self) -> str:
        return self._path

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value
        self._write()

    def _read(self) -> dict[str, str]:
        if not os.path.exists(self._path):
            return {}
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            self.logging.warning("Could not read credential store %s: %s. Starting empty.", self._path, e)
            return {}
        if not isinstance(data, dict):
            self.logging.warning("Credential store %s does not hold a JSON object. Starting empty.", self._path)
            return {}
        return {str(k): str(v) for k, v in data.items() if v is not None}

    def _write(self) -> None:
        directory = os.path.dirname(self._path)
        if directory and not os.path.exists(directory):
            os.makedirs(directory)
        tmp_path = f"{self._path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(self._values, f, indent=2)
        os.replace(tmp_path, self._path)
