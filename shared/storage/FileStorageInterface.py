from abc import ABC, abstractmethod

from shared.helper.HelperConfig import HelperConfig


class FileStorageInterface(ABC):
    """Binary storage for uploaded attachment files, addressed by path."""

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config

    def get_engine_name(self) -> str:
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        pass

    @abstractmethod
    async def do_read_file(self, path: str) -> bytes:
        """Read the stored bytes.

        Raises:
            FileNotFoundError: If nothing is stored under the path.
        """
        pass

    @abstractmethod
    async def do_save_file(self, transaction_id: str, file_name: str, data: bytes) -> str:
        """Store bytes for a transaction and return the storage path.

        Raises:
            ValueError: If data is empty.
        """
        pass

    @abstractmethod
    async def do_delete_file(self, path: str) -> None:
        """Delete the stored bytes. Missing files are ignored."""
        pass
