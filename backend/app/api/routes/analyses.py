from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from backend.app.db.session import get_session
from backend.app.services.analyses import (
    AnalysisNotFoundError,
    AnalysisStoreError,
    delete_analysis,
    list_active_analyses,
    save_analysis,
)
from backend.app.services.export_report import export_filename, render_export_report

logger = logging.getLogger(__name__)

router = APIRouter()


class AnalysisIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    status: Literal["active", "archived", "deleted"] = "active"
    session_id: Optional[str] = None
    session_name: Optional[str] = None
    total_impressions: Optional[int] = None
    total_clicks: Optional[int] = None
    total_cost: Optional[float] = None
    average_ctr: Optional[float] = None
    average_cpc: Optional[float] = None
    average_cpa: Optional[float] = None
    dealership_context: Optional[Dict[str, Any]] = None
    analytics_data: Optional[Dict[str, Any]] = None
    ai_insights: Optional[Dict[str, Any]] = None


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.get("/list")
def list_analyses(db: Session = Depends(get_session)):
    try:
        analyses = list_active_analyses(db)
    except AnalysisStoreError:
        logger.exception("Database error while listing analyses")
        return _error(500, "Failed to retrieve analyses from database")
    except Exception:
        logger.exception("List analyses error")
        return _error(500, "Failed to retrieve analyses")
    return {"success": True, "analyses": analyses}


# The path converter lets an empty id reach the handler instead of falling through to a 404.
@router.delete("/delete/{analysis_id:path}")
def delete_analysis_route(analysis_id: str, db: Session = Depends(get_session)):
    try:
        delete_analysis(db, analysis_id)
    except ValueError as exc:
        logger.warning("Rejected delete without analysis id")
        return _error(400, str(exc))
    except AnalysisNotFoundError:
        logger.warning("Delete requested for unknown analysis %s", analysis_id)
        return _error(404, "Analysis not found")
    except AnalysisStoreError:
        logger.exception("Database error while deleting analysis %s", analysis_id)
        return _error(500, "Failed to delete analysis")
    except Exception:
        logger.exception("Delete analysis error")
        return _error(500, "Failed to delete analysis")
    return {"success": True, "message": "Analysis deleted successfully", "deletedId": analysis_id}


@router.post("/save")
def save_analysis_route(body: AnalysisIn, db: Session = Depends(get_session)):
    try:
        analysis = save_analysis(db, body.model_dump())
    except Exception:
        logger.exception("Save analysis error")
        return _error(500, "Failed to save analysis")
    return {"success": True, "message": "Analysis saved successfully", "analysis": analysis}


@router.get("/export")
def export_analyses(db: Session = Depends(get_session)):
    try:
        analyses = list_active_analyses(db)
        generated_at = datetime.now(timezone.utc)
        content = render_export_report(analyses, generated_at)
    except Exception:
        logger.exception("Export analyses error")
        return _error(500, "Failed to export analyses")
    filename = export_filename(analyses, generated_at)
    return PlainTextResponse(
        content,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
