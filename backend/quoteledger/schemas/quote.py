"""Quote schemas."""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

# Money columns are Numeric(12, 2).
CENT = Decimal("0.01")
MAX_AMOUNT = Decimal("9999999999.99")


def to_cents(value: Optional[Decimal]) -> Optional[Decimal]:
    """Round an amount to whole cents (half up), the precision it is stored at."""
    if value is None:
        return None
    if abs(value) > MAX_AMOUNT:
        raise ValueError(f"Amount out of range: {value}")
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


class QuoteStatus(str, Enum):
    """Workflow status of a quote. Not part of the versioned content."""
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class QuoteItemData(BaseModel):
    """One quote line as sent by the editor and as stored in snapshots."""
    category: Optional[str] = None
    category_name: Optional[str] = None
    room: Optional[str] = None
    job: str = ""
    quantity: float = 0
    # The editor historically posts this field as "price".
    unit_price: float = Field(0, validation_alias=AliasChoices("unit_price", "price"))
    total: float = 0
    material_price: Optional[float] = None
    labor_price: Optional[float] = None
    template_id: Optional[str] = None
    template_name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator('category', 'template_id', mode='before')
    @classmethod
    def coerce_id(cls, v: Any) -> Optional[str]:
        # Category/template ids arrive as numbers or strings.
        if v is None or v == "":
            return None
        return str(v)

    @field_validator('job', mode='before')
    @classmethod
    def default_job(cls, v: Any) -> str:
        return "" if v is None else v


class QuoteItemResponse(QuoteItemData):
    """Live quote item with its storage bookkeeping."""
    id: int
    position: int


class QuoteSave(BaseModel):
    """Payload for the save operation: create when ``id`` is absent, else update.

    ``total`` is rounded to cents here, so what is summarized and stored agree.
    """
    id: Optional[int] = None
    name: str
    total: Decimal = Decimal("0")
    items: List[QuoteItemData] = []
    notes: Optional[str] = None
    config: Dict[str, Any] = {}

    @field_validator('total')
    @classmethod
    def round_total(cls, v: Decimal) -> Decimal:
        return to_cents(v)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Kitchen",
                    "total": "1000.00",
                    "notes": "Tiles supplied by client",
                    "config": {"vat_rate": 23, "display_mode": "gross"},
                    "items": [
                        {
                            "room": "Bath",
                            "job": "Tiling",
                            "quantity": 10,
                            "unit_price": 50,
                            "total": 500,
                        }
                    ],
                }
            ]
        }
    }


class SaveResponse(BaseModel):
    """Result of a save."""
    quote_id: int
    version_num: int
    change_summary: str
    created: bool = False


class QuoteResponse(BaseModel):
    """Full live quote."""
    id: int
    owner_id: str
    name: str
    total: Decimal
    notes: Optional[str] = None
    config: Dict[str, Any] = {}
    current_version: int
    status: QuoteStatus
    daily_earnings: Optional[Decimal] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: List[QuoteItemResponse] = []

    model_config = ConfigDict(from_attributes=True)


class QuoteListResponse(BaseModel):
    """Quote row for history lists (no items)."""
    id: int
    name: str
    total: Decimal
    current_version: int
    status: QuoteStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class QuoteStatusUpdate(BaseModel):
    """Payload for changing a quote's workflow status."""
    status: QuoteStatus
    daily_earnings: Optional[Decimal] = Field(None, ge=0)

    @field_validator('daily_earnings')
    @classmethod
    def round_earnings(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return to_cents(v)
