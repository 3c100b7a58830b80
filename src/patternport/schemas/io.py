from typing import List, Optional

from pydantic import BaseModel, Field, computed_field


class ImportRequest(BaseModel):
    """Represent a request to import pattern files by file name.

    Leaving ``files`` unset imports every pattern file of the workspace.
    """

    files: Optional[List[str]] = Field(
        None, description="File names inside the pattern directory"
    )


class ImportResult(BaseModel):
    """Represent the aggregated outcome of a batch import."""

    success: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def succeeded(self) -> int:
        return len(self.success)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def message(self) -> str:
        lines = [f"Successfully imported {len(self.success)} patterns"]
        if self.errors:
            lines.append("Some patterns failed to import:")
            lines.extend(self.errors)
        return "\n".join(lines)


class ExportResult(BaseModel):
    """Represent the outcome of writing pattern files to a theme."""

    path: str
    files_created: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)


class PatternFileStatus(BaseModel):
    """Represent a candidate pattern file and whether it is already imported."""

    file: str
    slug: str
    imported: bool
