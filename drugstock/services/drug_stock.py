# FILE: drugstock/services/drug_stock.py
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from drugstock.models.drug import Drug
from drugstock.schemas.drug import DrugCreate, DrugOut, DrugUpdate
from drugstock.services.ledger import (
    REASON_DISPENSE,
    REASON_INITIAL,
    REASON_UPDATE,
    create_stock_transaction,
)

logger = logging.getLogger(__name__)

# fields written by create/update; id and timestamps are managed here
_DRUG_FIELDS = (
    "name",
    "group",
    "brand",
    "active_ingredients",
    "dosage",
    "form",
    "units_count",
    "units_in_stock",
    "is_emergency",
)

# left untouched by an update that omits them
_OPTIONAL_FIELDS = ("dosage", "form", "units_count")


class DrugNotFound(LookupError):
    def __init__(self, drug_id: int):
        super().__init__(f"Drug {drug_id} not found")
        self.drug_id = drug_id


def units_from_packs(pack_count: int, units_per_pack: Optional[int], leftover_units: int = 0) -> int:
    """
    packs x units-per-pack + leftover. A missing or zero units-per-pack
    counts as 1.
    """
    return (pack_count or 0) * (units_per_pack or 1) + (leftover_units or 0)


def all_drugs(db: Session) -> List[Drug]:
    """Full catalog scan in enumeration (id) order."""
    return db.query(Drug).order_by(Drug.id.asc()).all()


def get_drug(db: Session, drug_id: int) -> Drug:
    drug = db.get(Drug, drug_id)
    if not drug:
        raise DrugNotFound(drug_id)
    return drug


def create_drug(db: Session, payload: DrugCreate, user=None) -> Drug:
    """
    Persist the drug, then log its opening stock as "initial stock".
    """
    data = payload.model_dump(include=set(_DRUG_FIELDS))
    drug = Drug(**data, expiration_date=payload.expiration_date)
    db.add(drug)
    db.flush()

    create_stock_transaction(
        db,
        drug_id=drug.id,
        delta=drug.units_in_stock,
        reason=REASON_INITIAL,
        user=user,
    )
    db.commit()
    db.refresh(drug)
    logger.info("Drug created id=%s name=%r units=%s", drug.id, drug.name, drug.units_in_stock)
    return drug


def update_drug(db: Session, drug_id: int, payload: DrugUpdate, user=None) -> Drug:
    """
    Required fields and is_emergency are always written. Omitted dosage,
    form, units_count and expiration_date keep their stored values.

    A changed units_in_stock logs new - old as "update stock" against the
    value read here; concurrent updates are last-writer-wins.
    """
    prev = db.get(Drug, drug_id)
    if not prev:
        raise DrugNotFound(drug_id)

    new_units = payload.units_in_stock
    if prev.units_in_stock != new_units:
        create_stock_transaction(
            db,
            drug_id=drug_id,
            delta=new_units - prev.units_in_stock,
            reason=REASON_UPDATE,
            user=user,
        )

    always = set(_DRUG_FIELDS) - set(_OPTIONAL_FIELDS)
    data = payload.model_dump(include=always)
    data.update(payload.model_dump(include=set(_OPTIONAL_FIELDS), exclude_unset=True))
    for k, v in data.items():
        setattr(prev, k, v)
    # an omitted expiration date keeps the stored one
    if payload.expiration_date is not None:
        prev.expiration_date = payload.expiration_date

    db.commit()
    db.refresh(prev)
    logger.info("Drug updated id=%s", drug_id)
    return prev


def delete_drug(db: Session, drug_id: int) -> DrugOut:
    """
    Remove the drug and return a snapshot of it. Its ledger rows stay behind
    and no transaction is logged.
    """
    drug = get_drug(db, drug_id)
    snapshot = DrugOut.model_validate(drug)
    db.delete(drug)
    db.commit()
    logger.info("Drug deleted id=%s", drug_id)
    return snapshot


def adjust_units(
    db: Session,
    drug_id: int,
    delta: int,
    reason: str | None = None,
    user=None,
) -> Drug:
    """
    Log the movement, then increment units_in_stock in the database.

    The two writes are separate commits: when the drug does not exist the
    ledger row is kept and DrugNotFound is raised. There is no floor check.
    """
    create_stock_transaction(db, drug_id=drug_id, delta=delta, reason=reason, user=user)
    db.commit()

    result = db.execute(
        update(Drug)
        .where(Drug.id == drug_id)
        .values(units_in_stock=Drug.units_in_stock + delta)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        raise DrugNotFound(drug_id)
    db.commit()

    drug = db.get(Drug, drug_id, populate_existing=True)
    if drug.units_in_stock < 0:
        logger.warning("Drug id=%s stock is negative (%s) after delta %+d",
                       drug_id, drug.units_in_stock, delta)
    return drug


def dispense(
    db: Session,
    drug_id: int,
    pack_count: int,
    leftover_units: int,
    reason: str | None = REASON_DISPENSE,
    user=None,
) -> Drug:
    """
    Deduct whole packs plus loose units, sized by the drug's units per pack.
    """
    drug = get_drug(db, drug_id)
    units = units_from_packs(pack_count, drug.units_count, leftover_units)
    if units <= 0:
        raise ValueError("Nothing to dispense: pack count and leftover units are both zero")
    return adjust_units(db, drug_id, -units, reason or REASON_DISPENSE, user=user)


def drug_stats(db: Session) -> Dict:
    """
    Totals plus a per-group breakdown, groups in first-seen scan order.
    """
    drugs = all_drugs(db)
    total_units = sum(d.units_in_stock or 0 for d in drugs)

    groups: Dict[str, Dict[str, int]] = {}
    for d in drugs:
        entry = groups.setdefault(d.group, {"drug_count": 0, "unit_count": 0})
        entry["drug_count"] += 1
        entry["unit_count"] += d.units_in_stock or 0

    return {
        "total_units": total_units,
        "total_drugs": len(drugs),
        "group_summary": [
            {"group": g, "drug_count": v["drug_count"], "unit_count": v["unit_count"]}
            for g, v in groups.items()
        ],
    }
