import logging
from typing import Annotated, Any, Dict, List, Optional, Union

from fastmcp import FastMCP
from pydantic import Field, ValidationError

from .db.database import get_db_session_for_workspace
from .schemas import pattern as pattern_schema
from .schemas.error import MCPError
from .schemas.io import ExportResult, ImportResult, PatternFileStatus
from .schemas.pattern import PatternRead, PatternStatus
from .services import io_service, pattern_service
from .services.errors import (
    PatternNotFoundError,
    PatternParseError,
    StorageWriteError,
    UpsertError,
)

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
)
log = logging.getLogger(__name__)

mcp_server = FastMCP(name="PatternPort-MCP")

WorkspaceId = Annotated[
    str, Field(description="Identifier for the workspace (absolute path of the theme)")
]
StringList = Optional[List[str]]


def _saved(db: Any, workspace_id: str, db_pattern: Any) -> Union[PatternRead, MCPError]:
    """Run the save hook and convert the stored pattern for output."""
    try:
        io_service.sync_saved_pattern(db, workspace_id, db_pattern)
    except StorageWriteError as e:
        log.error(f"Pattern '{db_pattern.slug}' saved but its file could not be written: {e}")
        return MCPError(
            error="Pattern saved but its file could not be written",
            details={"id": db_pattern.id, "path": str(e.path), "reason": e.message},
        )
    return PatternRead.model_validate(db_pattern)


@mcp_server.tool()
async def log_pattern(
    workspace_id: WorkspaceId,
    title: Annotated[str, Field(description="Pattern title. The slug is derived from it.")],
    content: Annotated[Optional[str], Field(description="Raw block markup of the pattern.")] = None,
    description: Annotated[Optional[str], Field(description="Short description.")] = None,
    categories: Annotated[StringList, Field(description="Pattern category slugs.")] = None,
    keywords: Annotated[StringList, Field(description="Search keywords.")] = None,
    viewport_width: Annotated[Optional[int], Field(description="Preview width in pixels (default 1280).")] = None,
    block_types: Annotated[StringList, Field(description="Block types the pattern applies to.")] = None,
    post_types: Annotated[StringList, Field(description="Post types the pattern is limited to.")] = None,
    template_types: Annotated[StringList, Field(description="Template types the pattern applies to.")] = None,
    inserter: Annotated[Optional[bool], Field(description="Show the pattern in the inserter (default true).")] = None,
    status: Annotated[PatternStatus, Field(description="'publish' or 'draft'.")] = "publish",
) -> Union[PatternRead, MCPError]:
    """Logs or updates a block pattern, keyed by the slug of its title."""
    if not workspace_id:
        return MCPError(error="workspace_id is a required argument.")
    try:
        data = pattern_schema.PatternCreate(
            title=title,
            content=content,
            description=description,
            categories=categories,
            keywords=keywords,
            viewport_width=viewport_width,
            block_types=block_types,
            post_types=post_types,
            template_types=template_types,
            inserter=inserter,
            status=status,
        )
    except ValidationError as e:
        return MCPError(error="Validation error", details=str(e))

    async with get_db_session_for_workspace(workspace_id) as db:
        try:
            db_pattern = pattern_service.upsert(db, data)
        except UpsertError as e:
            return MCPError(error="Failed to store pattern", details=str(e))
        return _saved(db, workspace_id, db_pattern)


@mcp_server.tool()
async def update_pattern(
    workspace_id: WorkspaceId,
    pattern_id: Annotated[int, Field(description="The ID of the pattern to update.")],
    title: Annotated[Optional[str], Field(description="New title; also changes the slug.")] = None,
    content: Annotated[Optional[str], Field(description="New block markup.")] = None,
    description: Annotated[Optional[str], Field(description="New description.")] = None,
    categories: Annotated[StringList, Field(description="Replacement categories.")] = None,
    keywords: Annotated[StringList, Field(description="Replacement keywords.")] = None,
    viewport_width: Annotated[Optional[int], Field(description="New preview width.")] = None,
    block_types: Annotated[StringList, Field(description="Replacement block types.")] = None,
    post_types: Annotated[StringList, Field(description="Replacement post types.")] = None,
    template_types: Annotated[StringList, Field(description="Replacement template types.")] = None,
    inserter: Annotated[Optional[bool], Field(description="Inserter visibility.")] = None,
    status: Annotated[Optional[PatternStatus], Field(description="'publish' or 'draft'.")] = None,
) -> Union[PatternRead, MCPError]:
    """Updates fields of an existing pattern. Omitted fields are left unchanged."""
    if not workspace_id:
        return MCPError(error="workspace_id is a required argument.")
    changes: Dict[str, Any] = {
        "title": title,
        "content": content,
        "description": description,
        "categories": categories,
        "keywords": keywords,
        "viewport_width": viewport_width,
        "block_types": block_types,
        "post_types": post_types,
        "template_types": template_types,
        "inserter": inserter,
        "status": status,
    }
    try:
        update_data = pattern_schema.PatternUpdate(
            **{key: value for key, value in changes.items() if value is not None}
        )
    except ValidationError as e:
        return MCPError(error="Validation error", details=str(e))
    if not update_data.model_dump(exclude_unset=True):
        return MCPError(error="No update fields provided.")

    async with get_db_session_for_workspace(workspace_id) as db:
        try:
            updated = pattern_service.update(db, pattern_id, update_data)
        except UpsertError as e:
            return MCPError(error="Failed to store pattern", details=str(e))
        if updated is None:
            return MCPError(error="Pattern not found", details={"id": pattern_id})
        return _saved(db, workspace_id, updated)


@mcp_server.tool()
async def get_pattern(
    workspace_id: WorkspaceId,
    slug: Annotated[str, Field(description="Slug of the pattern.")],
) -> Union[PatternRead, MCPError]:
    """Retrieves a single pattern by its slug."""
    if not workspace_id:
        return MCPError(error="workspace_id is a required argument.")
    async with get_db_session_for_workspace(workspace_id) as db:
        db_pattern = pattern_service.get_by_slug(db, slug)
        if db_pattern is None:
            return MCPError(error=f"Pattern '{slug}' not found", details={"slug": slug})
        return PatternRead.model_validate(db_pattern)


@mcp_server.tool()
async def get_patterns(
    workspace_id: WorkspaceId,
    search: Annotated[Optional[str], Field(description="Text to look for in title, description and content.")] = None,
    category: Annotated[Optional[str], Field(description="Only patterns in this category.")] = None,
    status: Annotated[Optional[PatternStatus], Field(description="Only patterns with this status.")] = None,
    limit: Annotated[Optional[int], Field(description="Maximum number of patterns to return.")] = None,
) -> Union[List[PatternRead], MCPError]:
    """Retrieves patterns ordered by title."""
    if not workspace_id:
        return MCPError(error="workspace_id is a required argument.")
    async with get_db_session_for_workspace(workspace_id) as db:
        patterns = pattern_service.get_multi(
            db, limit=limit or 100, search=search, category=category, status=status
        )
        return [PatternRead.model_validate(p) for p in patterns]


@mcp_server.tool()
async def delete_pattern(
    workspace_id: WorkspaceId,
    pattern_id: Annotated[int, Field(description="The ID of the pattern to delete.")],
) -> Union[Dict[str, Any], MCPError]:
    """Deletes a pattern record by its ID. Its theme file is left in place."""
    if not workspace_id:
        return MCPError(error="workspace_id is a required argument.")
    async with get_db_session_for_workspace(workspace_id) as db:
        deleted = pattern_service.delete(db, pattern_id)
        return (
            {"status": "success", "id": pattern_id}
            if deleted
            else MCPError(error="Pattern not found", details={"id": pattern_id})
        )


@mcp_server.tool()
async def list_pattern_files(
    workspace_id: WorkspaceId,
) -> Union[List[PatternFileStatus], MCPError]:
    """Lists the theme's pattern files and whether each one is already imported."""
    if not workspace_id:
        return MCPError(error="workspace_id is a required argument.")
    async with get_db_session_for_workspace(workspace_id) as db:
        return io_service.for_workspace(db, workspace_id).list_pattern_files()


@mcp_server.tool()
async def import_patterns(
    workspace_id: WorkspaceId,
    files: Annotated[
        StringList,
        Field(description="File names inside the pattern directory. Omit to import every file."),
    ] = None,
) -> Union[ImportResult, MCPError]:
    """Imports theme pattern files into the database and rewrites them in canonical form."""
    if not workspace_id:
        return MCPError(error="workspace_id is a required argument.")
    async with get_db_session_for_workspace(workspace_id) as db:
        sync = io_service.for_workspace(db, workspace_id)
        return sync.import_all() if files is None else sync.import_named(files)


@mcp_server.tool()
async def export_patterns(
    workspace_id: WorkspaceId,
) -> Union[ExportResult, MCPError]:
    """Writes every published pattern to the theme's pattern directory."""
    if not workspace_id:
        return MCPError(error="workspace_id is a required argument.")
    async with get_db_session_for_workspace(workspace_id) as db:
        return io_service.for_workspace(db, workspace_id).export_all()


@mcp_server.tool()
async def diff_pattern_file(
    workspace_id: WorkspaceId,
    slug: Annotated[str, Field(description="Slug of the pattern to compare.")],
) -> Union[List[Any], MCPError]:
    """Compares a stored pattern with its theme file and returns the differences.

    Each difference is a dictdiffer entry such as
    ``("change", "description", ["stored", "on disk"])``. An empty list means
    the file matches the database record.
    """
    if not workspace_id:
        return MCPError(error="workspace_id is a required argument.")
    async with get_db_session_for_workspace(workspace_id) as db:
        try:
            return io_service.for_workspace(db, workspace_id).diff_pattern_file(slug)
        except PatternNotFoundError as e:
            return MCPError.from_exception(e, slug=slug)
        except PatternParseError as e:
            return MCPError.from_exception(e, slug=slug)
