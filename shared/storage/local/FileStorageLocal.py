"""Local filesystem storage. Files live under {base}/{transaction_id}/{uuid}{ext}."""

import asyncio
import uuid
from pathlib import Path

from shared.helper.HelperConfig import HelperConfig
from shared.storage.FileStorageInterface import FileStorageInterface


class FileStorageLocal(FileStorageInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_path = Path(helper_config.get_string_val("STORAGE_BASE_PATH", default="./data/attachments"))

    def _get_engine_name(self) -> str:
        return "Local"

    def get_base_path(self) -> Path:
        return self._base_path

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_read_file(self, path: str) -> bytes:
        file_path = Path(path)
        if not file_path.is_file():
            raise FileNotFoundError(f"File not found: {path}")
        return await asyncio.to_thread(file_path.read_bytes)

    async def do_save_file(self, transaction_id: str, file_name: str, data: bytes) -> str:
        if not data:
            raise ValueError("File is empty.")
        target_dir = self._base_path / transaction_id
        file_path = target_dir / f"{uuid.uuid4()}{Path(file_name).suffix}"

        def _write() -> None:
            target_dir.mkdir(parents=True, exist_ok=True)
            file_path.write_bytes(data)

        await asyncio.to_thread(_write)
        self.logging.info("File saved: %s", file_path)
        return str(file_path)

    async def do_delete_file(self, path: str) -> None:
        file_path = Path(path)
        if file_path.is_file():
            await asyncio.to_thread(file_path.unlink)
            self.logging.info("File deleted: %s", file_path)
