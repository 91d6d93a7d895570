from __future__ import annotations

import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List


class StorageAdapter(ABC):
    """
    Where the report reads its indicator spreadsheets from and writes its
    artefacts to.

    Keys are logical, slash-separated names such as
    "API_SP.POP.TOTL_DS2_en_excel_v2.xlsx" or "indicator_animation.gif";
    implementations decide where they physically live.
    """

    @abstractmethod
    def write_raw(self, key: str, content: bytes) -> str:
        """
        Store `content` under `key`, replacing any previous artefact.

        Returns a location string for the progress output, e.g.
        "reports/recent_averages_table.html".
        """

    @abstractmethod
    def read_raw(self, key: str) -> bytes:
        """Return the bytes stored under `key` (FileNotFoundError if absent)."""

    @abstractmethod
    def list_keys(self, prefix: str = "") -> List[str]:
        """Sorted keys starting with `prefix`."""

    def exists(self, key: str) -> bool:
        return key in self.list_keys()


class LocalStorageAdapter(StorageAdapter):
    """
    Filesystem storage rooted at one directory.

        LocalStorageAdapter("reports").write_raw("indicator_animation.gif", ...)
        -> ./reports/indicator_animation.gif

    The root (and any sub-directory of a key) is created on first write.
    """

    def __init__(self, root_dir: Path | str = ".") -> None:
        self.root_dir = Path(root_dir)

    def path_for(self, key: str) -> Path:
        return self.root_dir / key

    def write_raw(self, key: str, content: bytes) -> str:
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return str(path)

    def read_raw(self, key: str) -> bytes:
        return self.path_for(key).read_bytes()

    def exists(self, key: str) -> bool:
        return self.path_for(key).is_file()

    def list_keys(self, prefix: str = "") -> List[str]:
        if not self.root_dir.is_dir():
            return []

        keys = (
            str(path.relative_to(self.root_dir)).replace(os.sep, "/")
            for path in self.root_dir.rglob("*")
            if path.is_file()
        )
        return sorted(key for key in keys if key.startswith(prefix))
