from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..core.config import decode_workspace_id
from ..db.database import get_db
from ..schemas import io as io_schema
from ..services import io_service

router = APIRouter(prefix="/workspaces/{workspace_id_b64}/io", tags=["Import/Export"])


@router.get("/files", response_model=List[io_schema.PatternFileStatus])
def list_pattern_files(workspace_id_b64: str, db: Session = Depends(get_db)):
    """List the theme's pattern files and whether each one is already imported."""
    try:
        workspace_id = decode_workspace_id(workspace_id_b64)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return io_service.for_workspace(db, workspace_id).list_pattern_files()


@router.post("/import", response_model=io_schema.ImportResult)
def import_patterns(
    workspace_id_b64: str,
    request: Optional[io_schema.ImportRequest] = None,
    db: Session = Depends(get_db),
):
    """Import pattern files into the workspace database. Without a file list every file is imported."""
    try:
        workspace_id = decode_workspace_id(workspace_id_b64)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    sync = io_service.for_workspace(db, workspace_id)
    if request is None or request.files is None:
        return sync.import_all()
    return sync.import_named(request.files)


@router.post("/export", response_model=io_schema.ExportResult)
def export_patterns(workspace_id_b64: str, db: Session = Depends(get_db)):
    """Write every published pattern of the workspace to the theme's pattern directory."""
    try:
        workspace_id = decode_workspace_id(workspace_id_b64)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return io_service.for_workspace(db, workspace_id).export_all()
