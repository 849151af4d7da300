"""Central configuration helper for the transaction document pipeline."""

import logging
import os


class HelperConfig:
    """Reads every setting from environment variables.

    Keys are case-insensitive. An empty variable counts as unset. A getter
    called without a default treats the key as required.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def _read_raw(self, key: str, has_default: bool) -> str | None:
        key = key.upper()
        raw = (os.getenv(key) or "").strip() or None
        if raw is None and not has_default:
            raise ValueError(f"Environment variable '{key}' is not set.")
        return raw

    def get_string_val(self, key: str, default: str | None = None) -> str:
        """Read a string environment variable.

        Args:
            key (str): Environment variable name.
            default (str | None): Fallback value if the variable is not set.

        Returns:
            str: The resolved value.

        Raises:
            ValueError: If the variable is not set and no default is provided.
        """
        raw = self._read_raw(key, has_default=default is not None)
        return raw if raw is not None else default

    def get_number_val(self, key: str, default: float | int | None = None) -> float | int:
        """Read a numeric environment variable.

        Values containing a dot are parsed as float, everything else as int.

        Raises:
            ValueError: If the variable is not set and no default is provided,
                or if the value is not a number.
        """
        raw = self._read_raw(key, has_default=default is not None)
        if raw is None:
            return default
        try:
            return float(raw) if "." in raw else int(raw)
        except ValueError:
            raise ValueError(f"Environment variable '{key.upper()}' is not a valid number: '{raw}'.")

    def get_bool_val(self, key: str, default: bool | None = None) -> bool:
        """Read a boolean environment variable ("true", "1", "yes" are truthy)."""
        raw = self._read_raw(key, has_default=default is not None)
        if raw is None:
            return default
        return raw.lower() in ("true", "1", "yes")

    def get_list_val(self, key: str, default: list[str] | None = None, separator: str = ",", element_type: type = str) -> list:
        """Read a list environment variable in the form "[elem1,elem2,...]".

        Args:
            key (str): Environment variable name.
            default (list[str] | None): Fallback value if the variable is not set.
            separator (str): Delimiter between elements.
            element_type (type): Type each element is cast to.

        Returns:
            list: The parsed elements, blank elements removed.

        Raises:
            ValueError: If the variable is missing without default, is not
                bracketed, or an element cannot be cast.
        """
        raw = self._read_raw(key, has_default=default is not None)
        if raw is None:
            return default
        if not raw.startswith("[") or not raw.endswith("]"):
            raise ValueError(f"Environment variable '{key.upper()}' must be in the format '[elem1{separator}elem2{separator}...]'. Got: '{raw}'")
        elements = [v.strip() for v in raw[1:-1].split(separator) if v.strip()]
        try:
            return [element_type(elem) for elem in elements]
        except ValueError as e:
            raise ValueError(f"Environment variable '{key.upper()}' contains invalid elements for type {element_type.__name__}: {e}")

    def get_logger(self) -> logging.Logger:
        """Return the application logger."""
        return self._logger
