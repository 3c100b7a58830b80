import logging
from pathlib import Path
from typing import Any, Iterable, List, Optional

import dictdiffer  # type: ignore
from sqlalchemy.orm import Session

from ..core import config as core_config
from ..db.database import register_workspace_init_hook
from ..schemas.io import ExportResult, ImportResult, PatternFileStatus
from ..schemas.pattern import PatternCreate
from .errors import PatternNotFoundError, PatternParseError, StorageWriteError, UpsertError
from .pattern_format import parse_pattern, serialize_pattern
from .stores import FileStore, LocalFileStore, RecordStore, SqlRecordStore

log = logging.getLogger(__name__)


class PatternSync:
    """Keeps pattern records and theme pattern files in step.

    Records are the source of truth; files are regenerated from them and can
    be imported back. Every collaborator is passed in.
    """

    def __init__(
        self,
        records: RecordStore,
        files: FileStore,
        patterns_dir: Path,
        extension: str = ".php",
    ) -> None:
        self.records = records
        self.files = files
        self.patterns_dir = Path(patterns_dir)
        self.extension = extension

    def pattern_path(self, slug: str) -> Path:
        return self.patterns_dir / f"{slug}{self.extension}"

    def resolve_file(self, name: str) -> Path:
        """Map a bare file name onto the pattern directory."""
        if not name or Path(name).name != name or name.startswith("."):
            raise ValueError(f"Invalid pattern file name: {name}")
        if not name.endswith(self.extension):
            raise ValueError(f"Not a pattern file: {name}")
        return self.patterns_dir / name

    def write_pattern(self, pattern: Any, current_text: Optional[str] = None) -> Path:
        """Serialise a stored pattern to its file, skipping identical content."""
        path = self.pattern_path(pattern.slug)
        text = serialize_pattern(pattern)
        if current_text == text and self.files.exists(path):
            log.debug(f"Pattern file already canonical: {path}")
            return path
        if not self.files.ensure_dir(self.patterns_dir):
            raise StorageWriteError(self.patterns_dir, "Could not create pattern directory")
        if not self.files.write_text(path, text):
            raise StorageWriteError(path, "Could not write pattern file")
        log.info(f"Wrote pattern file {path}")
        return path

    def export_pattern(self, pattern_id: int) -> Path:
        pattern = self.records.get(pattern_id)
        if pattern is None:
            raise PatternNotFoundError(pattern_id)
        return self.write_pattern(pattern)

    def export_all(self) -> ExportResult:
        """Write every published pattern to the theme, continuing past failures."""
        result = ExportResult(path=str(self.patterns_dir))
        for pattern in self.records.list(status="publish"):
            try:
                path = self.write_pattern(pattern)
            except StorageWriteError as e:
                log.warning(f"Export of pattern '{pattern.slug}' failed: {e}")
                result.errors.append(str(e))
                continue
            result.files_created.append(path.name)
        return result

    def list_pattern_files(self) -> List[PatternFileStatus]:
        statuses = []
        for path in self.files.list_files(self.patterns_dir, self.extension):
            slug = path.name[: -len(self.extension)]
            statuses.append(
                PatternFileStatus(
                    file=path.name,
                    slug=slug,
                    imported=self.records.find_by_slug(slug) is not None,
                )
            )
        return statuses

    def import_files(self, paths: Iterable[Path]) -> ImportResult:
        """Parse and upsert each file, then rewrite it in canonical form.

        A failing file is reported in ``errors`` and never stops the batch.
        """
        result = ImportResult()
        for path in paths:
            path = Path(path)
            try:
                text = self.files.read_text(path)
            except (OSError, UnicodeDecodeError) as e:
                log.warning(f"Could not read pattern file {path}: {e}")
                result.errors.append(f"Could not read pattern file: {path.name}")
                continue

            try:
                data = parse_pattern(text)
            except PatternParseError as e:
                log.warning(f"Could not parse pattern file {path}: {e}")
                result.errors.append(f"Could not parse pattern file: {path.name}")
                continue

            try:
                stored = self.records.upsert(data)
            except UpsertError as e:
                result.errors.append(f"Failed to create pattern {data.title}: {e}")
                continue
            result.success.append(stored.title)

            current = text if path == self.pattern_path(stored.slug) else None
            try:
                self.write_pattern(stored, current_text=current)
            except StorageWriteError as e:
                log.warning(f"Imported '{stored.slug}' but could not rewrite its file: {e}")
                result.errors.append(f"Error importing {path.name}: {e}")

        log.info(
            f"Imported {len(result.success)} patterns from {self.patterns_dir}, "
            f"{len(result.errors)} errors"
        )
        return result

    def import_named(self, names: Iterable[str]) -> ImportResult:
        """Import files given by name, reporting invalid names as errors."""
        paths, invalid = [], []
        for name in names:
            try:
                paths.append(self.resolve_file(name))
            except ValueError as e:
                invalid.append(str(e))
        result = self.import_files(paths)
        result.errors = invalid + result.errors
        return result

    def import_all(self) -> ImportResult:
        return self.import_files(self.files.list_files(self.patterns_dir, self.extension))

    def auto_import_if_empty(self) -> Optional[ImportResult]:
        """Seed an empty record store from the theme's pattern files."""
        if self.records.count() > 0:
            return None
        paths = self.files.list_files(self.patterns_dir, self.extension)
        if not paths:
            return None
        log.info(f"Record store empty, importing {len(paths)} pattern files from {self.patterns_dir}")
        return self.import_files(paths)

    def diff_pattern_file(self, slug: str) -> List[Any]:
        """Differences between the stored record and its pattern file on disk."""
        record = self.records.find_by_slug(slug)
        if record is None:
            raise PatternNotFoundError(slug)
        path = self.pattern_path(slug)
        if not self.files.exists(path):
            raise PatternNotFoundError(path.name)
        on_disk = parse_pattern(self.files.read_text(path))
        stored = PatternCreate.model_validate(record, from_attributes=True)
        return list(
            dictdiffer.diff(
                stored.model_dump(exclude={"status"}),
                on_disk.model_dump(exclude={"status"}),
            )
        )


def for_workspace(db: Session, workspace_id: str) -> PatternSync:
    """Build a PatternSync over a workspace's database and pattern directory."""
    return PatternSync(
        records=SqlRecordStore(db),
        files=LocalFileStore(),
        patterns_dir=core_config.get_patterns_dir_for_workspace(workspace_id),
        extension=core_config.settings.PATTERN_FILE_EXTENSION,
    )


def sync_saved_pattern(db: Session, workspace_id: str, pattern: Any) -> Optional[Path]:
    """Save hook: in file mode, published patterns are written to the theme."""
    if core_config.settings.MODE != "file" or pattern.status != "publish":
        return None
    return for_workspace(db, workspace_id).write_pattern(pattern)


def auto_import_on_first_open(db: Session, workspace_id: str) -> None:
    if not core_config.settings.is_development:
        return
    result = for_workspace(db, workspace_id).auto_import_if_empty()
    if result is not None:
        log.info(result.message)


register_workspace_init_hook(auto_import_on_first_open)
