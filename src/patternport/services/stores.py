import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

from sqlalchemy.orm import Session

from ..db import models
from ..schemas import pattern as pattern_schema
from . import pattern_service

log = logging.getLogger(__name__)


class RecordStore(ABC):
    """Persistent store of pattern records keyed by slug."""

    @abstractmethod
    def get(self, pattern_id: int) -> Optional[models.BlockPattern]:
        raise NotImplementedError

    @abstractmethod
    def find_by_slug(self, slug: str) -> Optional[models.BlockPattern]:
        raise NotImplementedError

    @abstractmethod
    def upsert(self, pattern: pattern_schema.PatternCreate) -> models.BlockPattern:
        raise NotImplementedError

    @abstractmethod
    def list(
        self, status: Optional[str] = None, limit: int = 1000
    ) -> List[models.BlockPattern]:
        raise NotImplementedError

    @abstractmethod
    def count(self) -> int:
        raise NotImplementedError


class FileStore(ABC):
    """Filesystem access used to read and write pattern files."""

    @abstractmethod
    def exists(self, path: Path) -> bool:
        raise NotImplementedError

    @abstractmethod
    def ensure_dir(self, path: Path) -> bool:
        raise NotImplementedError

    @abstractmethod
    def list_files(self, path: Path, extension: str) -> List[Path]:
        raise NotImplementedError

    @abstractmethod
    def read_text(self, path: Path) -> str:
        raise NotImplementedError

    @abstractmethod
    def write_text(self, path: Path, text: str) -> bool:
        raise NotImplementedError


class SqlRecordStore(RecordStore):
    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, pattern_id: int) -> Optional[models.BlockPattern]:
        return pattern_service.get(self.db, pattern_id)

    def find_by_slug(self, slug: str) -> Optional[models.BlockPattern]:
        return pattern_service.get_by_slug(self.db, slug)

    def upsert(self, pattern: pattern_schema.PatternCreate) -> models.BlockPattern:
        return pattern_service.upsert(self.db, pattern)

    def list(
        self, status: Optional[str] = None, limit: int = 1000
    ) -> List[models.BlockPattern]:
        return pattern_service.get_multi(self.db, limit=limit, status=status)

    def count(self) -> int:
        return pattern_service.count(self.db)


class LocalFileStore(FileStore):
    def exists(self, path: Path) -> bool:
        return path.exists()

    def ensure_dir(self, path: Path) -> bool:
        if path.is_dir():
            return True
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            log.error(f"Could not create directory {path}: {e}")
            return False
        return True

    def list_files(self, path: Path, extension: str) -> List[Path]:
        if not path.is_dir():
            return []
        return sorted(
            entry for entry in path.iterdir() if entry.is_file() and entry.name.endswith(extension)
        )

    def read_text(self, path: Path) -> str:
        # No newline translation: content is kept byte for byte.
        with path.open(encoding="utf-8", newline="") as f:
            return f.read()

    def write_text(self, path: Path, text: str) -> bool:
        """Write through a temporary sibling file so a failed write leaves the old file intact."""
        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(text)
            os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, path)
        except OSError as e:
            log.error(f"Could not write {path}: {e}")
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            return False
        return True
