import asyncio
from pathlib import Path
from typing import Dict, Optional, Protocol

from ..core.config import settings
from ..core.exceptions import StorageError


class Storage(Protocol):
    async def upload(self, path: str, content: str) -> str: ...

    async def download(self, path: str) -> str: ...


class LocalFileStorage:
    """Stores UTF-8 text files below a root directory."""

    def __init__(self, root: Optional[str] = None):
        self.root = Path(root if root is not None else settings.STORAGE_ROOT)

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if not target.is_relative_to(self.root.resolve()):
            raise StorageError(f"Path escapes storage root: {path}")
        return target

    def _write(self, target: Path, content: str) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")

    async def upload(self, path: str, content: str) -> str:
        target = self._resolve(path)
        try:
            await asyncio.to_thread(self._write, target, content)
        except OSError as e:
            raise StorageError(f"Failed to upload {path}: {e}") from e
        return path

    async def download(self, path: str) -> str:
        target = self._resolve(path)
        try:
            return await asyncio.to_thread(target.read_text, encoding="utf-8")
        except FileNotFoundError as e:
            raise StorageError(f"Object not found: {path}") from e
        except OSError as e:
            raise StorageError(f"Failed to download {path}: {e}") from e


class InMemoryStorage:
    """Dictionary-backed storage for tests and single-process runs."""

    def __init__(self):
        self.objects: Dict[str, str] = {}

    async def upload(self, path: str, content: str) -> str:
        self.objects[path] = content
        return path

    async def download(self, path: str) -> str:
        try:
            return self.objects[path]
        except KeyError:
            raise StorageError(f"Object not found: {path}") from None
