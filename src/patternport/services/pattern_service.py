import logging
import math
from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.slug import slugify
from ..db import models
from ..schemas import pattern as pattern_schema
from .errors import UpsertError

log = logging.getLogger(__name__)


def get(db: Session, pattern_id: int) -> models.BlockPattern | None:
    """Retrieves a single block pattern by its ID."""
    return db.query(models.BlockPattern).filter(models.BlockPattern.id == pattern_id).first()


def get_by_slug(db: Session, slug: str) -> models.BlockPattern | None:
    """Retrieves a single block pattern by its slug."""
    return db.query(models.BlockPattern).filter_by(slug=slug).first()


def count(db: Session) -> int:
    return db.query(func.count(models.BlockPattern.id)).scalar() or 0


def _filtered_query(
    db: Session,
    search: Optional[str] = None,
    category: Optional[str] = None,
    status: Optional[str] = None,
) -> Query:
    query = db.query(models.BlockPattern)
    if status:
        query = query.filter(models.BlockPattern.status == status)
    if search:
        term = f"%{search}%"
        query = query.filter(
            or_(
                models.BlockPattern.title.ilike(term),
                models.BlockPattern.description.ilike(term),
                models.BlockPattern.content.ilike(term),
            )
        )
    if category:
        # Exact match on one element of the JSON array.
        categories = func.json_each(models.BlockPattern.categories).table_valued("value")
        query = query.filter(
            select(categories.c.value).where(categories.c.value == category).exists()
        )
    return query


def get_multi(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    search: Optional[str] = None,
    category: Optional[str] = None,
    status: Optional[str] = None,
) -> List[models.BlockPattern]:
    """Retrieves block patterns ordered by title, with optional search and category filtering."""
    query = _filtered_query(db, search=search, category=category, status=status)
    return query.order_by(models.BlockPattern.title).offset(skip).limit(limit).all()


def get_page(
    db: Session,
    page: int = 1,
    per_page: int = 100,
    search: Optional[str] = None,
    category: Optional[str] = None,
    status: Optional[str] = "publish",
) -> Tuple[List[models.BlockPattern], int, int]:
    """Returns one page of patterns plus the total count and total number of pages."""
    query = _filtered_query(db, search=search, category=category, status=status)
    total = query.count()
    items = (
        query.order_by(models.BlockPattern.title)
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    total_pages = math.ceil(total / per_page) if per_page else 0
    return items, total, total_pages


def update(
    db: Session, pattern_id: int, update_data: pattern_schema.PatternUpdate
) -> models.BlockPattern | None:
    """Applies a partial update; a new title also moves the record to the new slug."""
    db_pattern = get(db, pattern_id)
    if db_pattern:
        update_dict = update_data.model_dump(exclude_unset=True, exclude_none=True)
        for key, value in update_dict.items():
            setattr(db_pattern, key, value)
        if "title" in update_dict:
            db_pattern.slug = slugify(update_dict["title"])
        try:
            db.commit()
        except (SQLAlchemyError, OverflowError) as e:
            db.rollback()
            raise UpsertError(str(e)) from e
        db.refresh(db_pattern)
    return db_pattern


def upsert(db: Session, pattern: pattern_schema.PatternCreate) -> models.BlockPattern:
    """Create or update the block pattern keyed by the slug of its title."""
    try:
        db_pattern = get_by_slug(db, pattern.slug)
        if db_pattern is None:
            db_pattern = models.BlockPattern(slug=pattern.slug)
            db.add(db_pattern)
        for key, value in pattern.model_dump().items():
            setattr(db_pattern, key, value)
        db.commit()
    except (SQLAlchemyError, OverflowError) as e:
        db.rollback()
        log.error(f"Could not store pattern '{pattern.slug}': {e}")
        raise UpsertError(str(e)) from e
    db.refresh(db_pattern)
    return db_pattern


def delete(db: Session, pattern_id: int) -> models.BlockPattern | None:
    """Deletes a block pattern by its ID."""
    db_pattern = get(db, pattern_id)
    if db_pattern:
        db.delete(db_pattern)
        db.commit()
    return db_pattern
