"""Quote API endpoints.

Endpoints are thin; QuoteService owns ownership checks, versioning and
transactions.
"""

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session
from typing import List, Optional

from ..core.auth import AuthContext, require_owner
from ..database import get_db
from ..schemas.quote import QuoteListResponse, QuoteResponse, QuoteSave, QuoteStatus, QuoteStatusUpdate, SaveResponse
from ..services import QuoteService

router = APIRouter(prefix="/api/quotes", tags=["quotes"])


@router.post("/save", response_model=SaveResponse)
def save_quote(
    data: QuoteSave,
    response: Response,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_owner),
):
    """Create a quote (no ``id``) or save a new version of an existing one."""
    result = QuoteService(db).save(auth.owner_id, data)
    if result.created:
        response.status_code = 201
    return result


@router.get("", response_model=List[QuoteListResponse])
def list_quotes(
    status: Optional[QuoteStatus] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_owner),
):
    """List the caller's quotes, newest first."""
    return QuoteService(db).list_quotes(auth.owner_id, status, skip, limit)


@router.get("/{quote_id}", response_model=QuoteResponse)
def get_quote(
    quote_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_owner),
):
    """Load one quote with its items for editing."""
    return QuoteService(db).get(auth.owner_id, quote_id)


@router.patch("/{quote_id}/status", response_model=QuoteResponse)
def update_quote_status(
    quote_id: int,
    update: QuoteStatusUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_owner),
):
    """Change workflow status. Does not create a version."""
    return QuoteService(db).update_status(
        auth.owner_id, quote_id, update.status, update.daily_earnings
    )


@router.delete("/{quote_id}", status_code=204)
def delete_quote(
    quote_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_owner),
):
    """Delete a quote and its whole version history."""
    QuoteService(db).delete(auth.owner_id, quote_id)
    return Response(status_code=204)
