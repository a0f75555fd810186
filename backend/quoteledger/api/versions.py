"""Version history API endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List

from ..core.auth import AuthContext, require_owner
from ..database import get_db
from ..schemas.version import ComparisonResponse, RestoreResponse, VersionResponse, VersionSummaryResponse
from ..services import VersionService

router = APIRouter(prefix="/api/quotes/{quote_id}", tags=["versions"])


@router.get("/versions", response_model=List[VersionSummaryResponse])
def list_versions(
    quote_id: int,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_owner),
):
    """List stored versions of a quote, newest first."""
    return VersionService(db).list_versions(auth.owner_id, quote_id, skip, limit)


@router.get("/versions/{version_num}", response_model=VersionResponse)
def get_version(
    quote_id: int,
    version_num: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_owner),
):
    """Get the full content of one version."""
    return VersionService(db).get_version(auth.owner_id, quote_id, version_num)


@router.get("/compare", response_model=ComparisonResponse)
def compare_versions(
    quote_id: int,
    v1: int = Query(..., ge=1),
    v2: int = Query(..., ge=1),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_owner),
):
    """Diff version ``v2`` against version ``v1``."""
    return VersionService(db).compare_versions(auth.owner_id, quote_id, v1, v2)


@router.post("/versions/{version_num}/restore", response_model=RestoreResponse)
def restore_version(
    quote_id: int,
    version_num: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_owner),
):
    """Restore a version; the replaced state is kept as a new version."""
    return VersionService(db).restore_version(auth.owner_id, quote_id, version_num)
