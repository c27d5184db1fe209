# FILE: drugstock/schemas/drug.py
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import List, Literal, Optional

from pydantic import Field, field_validator

from drugstock.schemas.common import CamelModel
from drugstock.utils.text import clean_list, clean_str

SortField = Literal["name", "group", "brand", "form", "unitsInStock", "expirationDate"]
SortOrder = Literal["asc", "desc"]

MAX_PAGE_SIZE = 100


# ---------- Drugs ----------


class DrugBase(CamelModel):
    name: str
    group: str
    brand: str
    active_ingredients: List[str]
    dosage: Optional[str] = None
    form: Optional[str] = None
    units_count: Optional[int] = Field(None, ge=0, description="Units per pack")
    units_in_stock: int = Field(..., description="packs x unitsCount + leftover, computed by the caller")
    expiration_date: Optional[date] = None
    is_emergency: bool = False

    @field_validator("name", "group", "brand")
    @classmethod
    def _required_text(cls, v: str) -> str:
        v = clean_str(v)
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("active_ingredients")
    @classmethod
    def _ingredients(cls, v: List[str]) -> List[str]:
        v = clean_list(v)
        if not v:
            raise ValueError("at least one active ingredient is required")
        return v

    @field_validator("dosage", "form")
    @classmethod
    def _optional_text(cls, v: Optional[str]) -> Optional[str]:
        return clean_str(v) or None

    @field_validator("units_count")
    @classmethod
    def _units_count(cls, v: Optional[int]) -> Optional[int]:
        # 0 means "not set"; pack maths then uses 1 unit per pack
        return v or None

    @field_validator("expiration_date", mode="before")
    @classmethod
    def _iso_date(cls, v):
        # accept full ISO datetimes ("2026-05-01T00:00:00.000Z") from JS clients;
        # an offset is resolved to the UTC day
        if isinstance(v, str):
            v = v.strip()
            if not v:
                return None
            if "T" in v:
                raw = v[:-1] + "+00:00" if v.endswith("Z") else v
                try:
                    v = datetime.fromisoformat(raw)
                except ValueError:
                    return v
        if isinstance(v, datetime):
            if v.tzinfo is not None:
                v = v.astimezone(timezone.utc)
            return v.date()
        return v


class DrugCreate(DrugBase):
    pass


class DrugUpdate(DrugBase):
    id: Optional[int] = None


class DrugOut(CamelModel):
    id: int
    name: str
    group: str
    brand: str
    active_ingredients: List[str]
    dosage: Optional[str] = None
    form: Optional[str] = None
    units_count: Optional[int] = None
    units_in_stock: int
    expiration_date: Optional[date] = None
    is_emergency: bool = False

    # derived for display
    pack_count: int = 0
    leftover_units: int = 0
    is_expired: bool = False

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DrugListQuery(CamelModel):
    page: int = Field(1, ge=1)
    page_size: int = Field(10, ge=1, le=MAX_PAGE_SIZE)
    search: Optional[str] = None
    sort_field: SortField = "name"
    sort_order: SortOrder = "asc"
    ingredient: Optional[str] = None


class DrugListOut(CamelModel):
    items: List[DrugOut]
    total: int
    page: int
    page_size: int


# ---------- Stock movements ----------


class AdjustUnitsIn(CamelModel):
    delta: int
    reason: Optional[str] = None


class DispenseIn(CamelModel):
    pack_count: int = Field(0, ge=0)
    leftover_units: int = Field(0, ge=0)
    reason: Optional[str] = "dispense"


class StockTransactionOut(CamelModel):
    id: int
    drug_id: int
    delta: int
    reason: Optional[str] = None
    user_id: Optional[int] = None
    created_at: datetime


# ---------- Stats ----------


class GroupSummaryOut(CamelModel):
    group: str
    drug_count: int
    unit_count: int


class DrugStatsOut(CamelModel):
    total_units: int
    total_drugs: int
    group_summary: List[GroupSummaryOut]
