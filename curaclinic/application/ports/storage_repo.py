from typing import Protocol


class StorageRepository(Protocol):
    def save_bytes(self, subdir: str, filename: str, data: bytes) -> str:
        ...

    def open_path(self, key: str) -> str:
        ...

    def remove(self, key: str) -> None:
        ...
