"""Central configuration helper for filechat_bridge."""

import logging
import os


class HelperConfig:
    """Reads every setting of the bridge from environment variables.

    Keys are case-insensitive. An empty variable counts as unset. A getter
    called without a default treats its key as required and raises
    ValueError when it is missing, so misconfiguration surfaces at startup.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    ##########################################
    ################ GETTER ##################
    ##########################################

    def get_logger(self) -> logging.Logger:
        """Return the application logger shared by all components."""
        return self._logger

    def get_string_val(self, key: str, default: str | None = None) -> str:
        raw = self._read_raw(key)
        if raw is None:
            return self._fallback(key, default)
        return raw

    def get_number_val(self, key: str, default: float | int | None = None) -> float | int:
        """Read an int, or a float if the value contains a decimal point.

        Raises:
            ValueError: If the key is required and unset, or the value is not numeric.
        """
        raw = self._read_raw(key)
        if raw is None:
            return self._fallback(key, default)
        try:
            return float(raw) if "." in raw else int(raw)
        except ValueError:
            raise ValueError(f"Environment variable '{key.upper()}' is not a valid number: '{raw}'.")

    def get_bool_val(self, key: str, default: bool | None = None) -> bool:
        """"true", "1" and "yes" (any case) are True, everything else False."""
        raw = self._read_raw(key)
        if raw is None:
            return self._fallback(key, default)
        return raw.lower() in ("true", "1", "yes")

    def get_list_val(self, key: str, default: list | None = None, separator: str = ",", element_type: type = str) -> list:
        """Read a list written as "[elem1,elem2,...]".

        Args:
            key (str): Environment variable name.
            default (list | None): Fallback if the variable is not set.
            separator (str): Delimiter between the elements.
            element_type (type): Type every element is cast to.

        Raises:
            ValueError: If the key is required and unset, the brackets are missing,
                or an element cannot be cast.
        """
        raw = self._read_raw(key)
        if raw is None:
            return self._fallback(key, default)
        if not (raw.startswith("[") and raw.endswith("]")):
            raise ValueError(f"Environment variable '{key.upper()}' must look like '[elem1{separator}elem2]'. Got: '{raw}'")
        elements = [v.strip() for v in raw[1:-1].split(separator) if v.strip()]
        try:
            return [element_type(elem) for elem in elements]
        except ValueError as e:
            raise ValueError(f"Environment variable '{key.upper()}' holds an element that is not {element_type.__name__}: {e}")

    def get_path_val(self, key: str, default: str | None = None) -> str:
        """Read a filesystem path. Relative paths are taken relative to ROOT_DIR.

        Returns:
            str: The absolute path.
        """
        path = os.path.expanduser(self.get_string_val(key, default=default))
        if not os.path.isabs(path):
            path = os.path.join(self.get_root_dir(), path)
        return os.path.abspath(path)

    def get_root_dir(self) -> str:
        """ROOT_DIR, or the current working directory if unset."""
        return self.get_string_val("ROOT_DIR", default=os.getcwd())

    ##########################################
    ############### HELPERS ##################
    ##########################################

    @staticmethod
    def _read_raw(key: str) -> str | None:
        raw = os.getenv(key.upper())
        if raw is None or not raw.strip():
            return None
        return raw.strip()

    @staticmethod
    def _fallback(key: str, default):
        if default is None:
            raise ValueError(f"Environment variable '{key.upper()}' is not set.")
        return default
