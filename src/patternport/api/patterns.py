from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from ..core import config as core_config
from ..db.database import get_db
from ..schemas import pattern as pattern_schema
from ..services import pattern_service


def require_api_mode() -> None:
    """Pattern routes are only served when the application runs in API mode."""
    if core_config.settings.MODE != "api":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="REST API is only available in API mode.",
        )


router = APIRouter(
    prefix="/workspaces/{workspace_id_b64}/patterns",
    tags=["Patterns"],
    dependencies=[Depends(require_api_mode)],
)


@router.get("/", response_model=List[pattern_schema.PatternRead])
def read_patterns(
    response: Response,
    page: int = Query(1, ge=1),
    per_page: int = Query(100, ge=1, le=500),
    search: Optional[str] = None,
    category: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """List published patterns ordered by title, one page at a time."""
    items, total, total_pages = pattern_service.get_page(
        db, page=page, per_page=per_page, search=search, category=category
    )
    response.headers["X-Total-Count"] = str(total)
    response.headers["X-Total-Pages"] = str(total_pages)
    return items


@router.get("/{slug}", response_model=pattern_schema.PatternRead)
def read_pattern(slug: str, db: Session = Depends(get_db)):
    """Retrieve a single published pattern by its slug."""
    db_pattern = pattern_service.get_by_slug(db, slug)
    if db_pattern is None or db_pattern.status != "publish":
        raise HTTPException(status_code=404, detail="Pattern not found")
    return db_pattern
