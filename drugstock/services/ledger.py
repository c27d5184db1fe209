# FILE: drugstock/services/ledger.py
from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from drugstock.models.drug import StockTransaction

logger = logging.getLogger(__name__)

REASON_INITIAL = "initial stock"
REASON_UPDATE = "update stock"
REASON_DISPENSE = "dispense"


def create_stock_transaction(
    db: Session,
    *,
    drug_id: int,
    delta: int,
    reason: str | None = None,
    user=None,
) -> StockTransaction:
    """
    Central creator for StockTransaction – always use this so the audit trail
    is consistent. Rows are only ever added, never updated or deleted.
    """
    st = StockTransaction(
        drug_id=drug_id,
        delta=int(delta),
        reason=reason,
        user_id=getattr(user, "id", None),
    )
    db.add(st)
    logger.info("Stock txn drug=%s delta=%+d reason=%r", drug_id, st.delta, reason)
    return st


def list_transactions(
    db: Session,
    *,
    drug_id: Optional[int] = None,
    limit: int = 100,
) -> List[StockTransaction]:
    """Newest first. drug_id may point at a deleted drug."""
    q = db.query(StockTransaction)
    if drug_id is not None:
        q = q.filter(StockTransaction.drug_id == drug_id)
    q = q.order_by(StockTransaction.created_at.desc(), StockTransaction.id.desc())
    return q.limit(limit).all()

