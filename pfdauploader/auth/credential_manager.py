import os
from pathlib import Path
from typing import Any, Optional

from dotenv import find_dotenv, load_dotenv

from pfdauploader.config.loader import load_config_file, save_config_file
from pfdauploader.exceptions import InputError


class CredentialManager:
    """
    Resolves the precisionFDA authorization key from, in order: an explicit
    value, the PFDA_KEY environment variable (optionally loaded from .env),
    and the uploader config file. Also persists a freshly supplied key so
    later runs can omit --key.
    """

    def __init__(
        self,
        config_path: Path,
        env_prefix: str = "PFDA_",
        file_config: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        :param config_path: Location of the uploader config file.
        :param env_prefix: Prefix used for environment variables.
        :param file_config: Already-parsed config file contents, if the
            caller loaded it. Read lazily from config_path otherwise.
        """
        load_dotenv(find_dotenv(usecwd=True))
        self.config_path = config_path
        self.env_prefix = env_prefix
        self._file_config = file_config

    # --------------------------------------------------------------------- #
    # Sources
    # --------------------------------------------------------------------- #
    def _env_key(self) -> Optional[str]:
        value = os.getenv(f"{self.env_prefix}KEY")
        return value.strip() if value and value.strip() else None

    def _file_key(self) -> Optional[str]:
        if self._file_config is None:
            self._file_config = load_config_file(self.config_path)
        # "Key" is what the 1.x uploader wrote.
        value = self._file_config.get("key") or self._file_config.get("Key")
        return str(value).strip() if value else None

    # --------------------------------------------------------------------- #
    # Public API
    # --------------------------------------------------------------------- #
    def get_key(self, explicit: Optional[str] = None) -> str:
        """
        Returns the authorization key, raising InputError if none is set.
        """
        if explicit and explicit.strip():
            return explicit.strip()

        key = self._env_key() or self._file_key()
        if key:
            return key

        raise InputError(
            "Authorization key not provided and configuration file "
            f"'{self.config_path}' not found. Please provide it as [--key <KEY>]."
        )

    def remember_key(self, key: str) -> Path:
        """
        Stores key in the config file, keeping any other settings there.
        Returns the config path.
        """
        data = dict(load_config_file(self.config_path))
        data.pop("Key", None)
        data["key"] = key
        save_config_file(self.config_path, data)
        self._file_config = data
        return self.config_path
