"""Scope classification endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Query

from bt_study_engine.core.models import ScopeClassification
from bt_study_engine.services.scope_classifier import classify_scope

router = APIRouter(prefix="/api/v1", tags=["scope"])


@router.get("/scope", response_model=ScopeClassification)
async def get_scope(reference: str = Query(default="")) -> ScopeClassification:
    """Classify ``reference`` and return the scope tokens a search would use."""
    return classify_scope(reference)


__all__ = ["router"]
