# FILE: drugstock/api/routes_drug.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.exceptions import RequestValidationError
from sqlalchemy.orm import Session

from drugstock.api.deps import get_db, current_user as auth_current_user
from drugstock.models.drug import DRUG_FORMS
from drugstock.models.user import User
from drugstock.schemas.common import ApiErrorResponse
from drugstock.schemas.drug import (
    MAX_PAGE_SIZE,
    AdjustUnitsIn,
    DispenseIn,
    DrugCreate,
    DrugListOut,
    DrugListQuery,
    DrugOut,
    DrugStatsOut,
    DrugUpdate,
    SortField,
    SortOrder,
    StockTransactionOut,
)
from drugstock.services.drug_query import query_drugs
from drugstock.services.drug_stock import (
    DrugNotFound,
    adjust_units,
    all_drugs,
    create_drug,
    delete_drug,
    dispense,
    drug_stats,
    update_drug,
)
from drugstock.services.ledger import list_transactions

router = APIRouter(
    prefix="/drugs",
    tags=["Drugs"],
    responses={401: {"model": ApiErrorResponse}, 404: {"model": ApiErrorResponse}},
)


def _not_found(e: DrugNotFound) -> HTTPException:
    return HTTPException(status_code=404, detail=str(e))


# ============================================================
# Catalog queries
# ============================================================
@router.get("", response_model=DrugListOut)
def list_drugs(
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_current_user),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=MAX_PAGE_SIZE, alias="pageSize"),
    search: Optional[str] = Query(None, description="name / brand / group / form / ingredient"),
    sort_field: SortField = Query("name", alias="sortField"),
    sort_order: SortOrder = Query("asc", alias="sortOrder"),
    ingredient: Optional[str] = Query(None, description="exact active ingredient"),
):
    """
    Paginated drug list. Filtering and sorting run in memory over the full
    catalog:
    - search: case-insensitive substring on name, brand, group, form or any ingredient
    - ingredient: exact, case-sensitive ingredient entry
    """
    params = DrugListQuery(
        page=page,
        page_size=page_size,
        search=search,
        sort_field=sort_field,
        sort_order=sort_order,
        ingredient=ingredient,
    )
    items, total = query_drugs(all_drugs(db), params)
    return DrugListOut(
        items=[DrugOut.model_validate(d) for d in items],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/stats", response_model=DrugStatsOut)
def get_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_current_user),
):
    return drug_stats(db)


@router.get("/forms", response_model=List[str])
def list_forms(current_user: User = Depends(auth_current_user)):
    return list(DRUG_FORMS)


@router.get("/transactions", response_model=List[StockTransactionOut])
def get_transactions(
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_current_user),
    drug_id: Optional[int] = Query(None, alias="drugId"),
    limit: int = Query(100, ge=1, le=500),
):
    return list_transactions(db, drug_id=drug_id, limit=limit)


# ============================================================
# Catalog mutations
# ============================================================
@router.post("", response_model=DrugOut)
def create(
    payload: DrugCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_current_user),
):
    return create_drug(db, payload, user=current_user)


@router.put("/{drug_id}", response_model=DrugOut)
def update(
    drug_id: int,
    payload: DrugUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_current_user),
):
    if payload.id is not None and payload.id != drug_id:
        raise RequestValidationError(
            [{"loc": ("body", "id"), "msg": "Body id does not match path id", "type": "value_error"}]
        )
    try:
        return update_drug(db, drug_id, payload, user=current_user)
    except DrugNotFound as e:
        raise _not_found(e)


@router.delete("/{drug_id}", response_model=DrugOut)
def delete(
    drug_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_current_user),
):
    try:
        return delete_drug(db, drug_id)
    except DrugNotFound as e:
        raise _not_found(e)


# ============================================================
# Stock movements
# ============================================================
@router.post("/{drug_id}/adjust-units", response_model=DrugOut)
def adjust(
    drug_id: int,
    payload: AdjustUnitsIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_current_user),
):
    try:
        return adjust_units(db, drug_id, payload.delta, payload.reason, user=current_user)
    except DrugNotFound as e:
        raise _not_found(e)


@router.post("/{drug_id}/dispense", response_model=DrugOut)
def dispense_drug(
    drug_id: int,
    payload: DispenseIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_current_user),
):
    try:
        return dispense(
            db,
            drug_id,
            pack_count=payload.pack_count,
            leftover_units=payload.leftover_units,
            reason=payload.reason,
            user=current_user,
        )
    except DrugNotFound as e:
        raise _not_found(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{drug_id}/transactions", response_model=List[StockTransactionOut])
def get_drug_transactions(
    drug_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(auth_current_user),
    limit: int = Query(100, ge=1, le=500),
):
    return list_transactions(db, drug_id=drug_id, limit=limit)
