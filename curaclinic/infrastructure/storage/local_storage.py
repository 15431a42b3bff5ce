import os
import time

from ...core.config import settings
from ...application.ports.storage_repo import StorageRepository


class LocalStorageRepository(StorageRepository):
    """Files under ``<UPLOAD_DIR>/<bucket>``; keys are paths relative to the bucket."""

    def __init__(self, root: str = None, bucket: str = None) -> None:
        self.root = os.path.join(root or settings.UPLOAD_DIR, bucket or settings.REPORTS_BUCKET)

    def save_bytes(self, subdir: str, filename: str, data: bytes) -> str:
        timestamped = f"{int(time.time() * 1000)}_{filename}"
        key = f"{subdir}/{timestamped}" if subdir else timestamped
        path = self.open_path(key)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)
        return key

    def open_path(self, key: str) -> str:
        path = os.path.abspath(os.path.join(self.root, key))
        if not path.startswith(os.path.abspath(self.root) + os.sep):
            raise ValueError(f"Invalid storage key: {key}")
        return path

    def remove(self, key: str) -> None:
        path = self.open_path(key)
        if os.path.exists(path):
            os.remove(path)
