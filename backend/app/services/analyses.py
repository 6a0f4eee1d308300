from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Mapping, Optional
from uuid import uuid4

from sqlalchemy import delete, select
from sqlalchemy.exc import DBAPIError, MultipleResultsFound, OperationalError
from sqlalchemy.orm import Session

from backend.app.db import models

ANALYSIS_COLUMNS = tuple(models.Analysis.__table__.columns)

METRIC_FIELDS = (
    "total_impressions",
    "total_clicks",
    "total_cost",
    "average_ctr",
    "average_cpc",
    "average_cpa",
)

SAVEABLE_FIELDS = (
    "status",
    "session_id",
    "session_name",
    *METRIC_FIELDS,
    "dealership_context",
    "analytics_data",
    "ai_insights",
)


class AnalysisStoreError(Exception):
    """Raised when the store reports a failure for an analyses query."""


class AnalysisNotFoundError(AnalysisStoreError):
    """Raised when a single-row operation matched no analysis."""

    def __init__(self, analysis_id: str):
        super().__init__(f"Analysis {analysis_id!r} not found")
        self.analysis_id = analysis_id


def _ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def serialize_analysis(row: Mapping[str, Any]) -> Dict[str, Any]:
    record = {column.name: row[column.name] for column in ANALYSIS_COLUMNS}
    created_at = _ensure_utc(record["created_at"])
    record["created_at"] = created_at.isoformat() if created_at else None
    return record


@contextmanager
def _store_errors(session: Session, action: str) -> Iterator[None]:
    try:
        yield
    except AnalysisStoreError:
        session.rollback()
        raise
    except OperationalError:
        # Connection-level failures are not store responses; let callers see them as-is.
        session.rollback()
        raise
    except DBAPIError as exc:
        session.rollback()
        raise AnalysisStoreError(f"Store failed to {action}: {exc.orig}") from exc


def list_active_analyses(session: Session) -> List[Dict[str, Any]]:
    """Return every active analysis, newest first.

    Rows sharing a ``created_at`` are ordered by id so the listing is stable.
    """
    stmt = (
        select(*ANALYSIS_COLUMNS)
        .where(models.Analysis.status == models.STATUS_ACTIVE)
        .order_by(models.Analysis.created_at.desc(), models.Analysis.id.asc())
    )
    with _store_errors(session, "list analyses"):
        rows = session.execute(stmt).mappings().all()
    return [serialize_analysis(row) for row in rows]


def delete_analysis(session: Session, analysis_id: Optional[str]) -> Dict[str, Any]:
    """Hard-delete one analysis and return the removed row.

    Raises:
        ValueError: ``analysis_id`` is empty; the store is not touched.
        AnalysisNotFoundError: no row matched.
        AnalysisStoreError: the store rejected the delete or it matched more than one row.
    """
    if not analysis_id:
        raise ValueError("Analysis ID is required")

    table = models.Analysis.__table__
    stmt = delete(table).where(table.c.id == analysis_id).returning(*ANALYSIS_COLUMNS)
    with _store_errors(session, "delete analysis"):
        try:
            deleted = session.execute(stmt).mappings().one_or_none()
        except MultipleResultsFound as exc:
            raise AnalysisStoreError(f"Delete of {analysis_id!r} matched more than one row") from exc
        if deleted is None:
            raise AnalysisNotFoundError(analysis_id)
        record = serialize_analysis(deleted)
        session.commit()
    return record


def save_analysis(session: Session, data: Mapping[str, Any]) -> Dict[str, Any]:
    """Insert a new analysis; id and created_at are always assigned here."""
    values = {field: data.get(field) for field in SAVEABLE_FIELDS}
    for field in METRIC_FIELDS:
        if values[field] is None:
            values[field] = 0
    values["status"] = values["status"] or models.STATUS_ACTIVE

    analysis = models.Analysis(id=str(uuid4()), created_at=datetime.now(timezone.utc), **values)
    with _store_errors(session, "save analysis"):
        session.add(analysis)
        session.flush()
        record = serialize_analysis({column.name: getattr(analysis, column.key) for column in ANALYSIS_COLUMNS})
        session.commit()
    return record
