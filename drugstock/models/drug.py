# FILE: drugstock/models/drug.py
from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import (
    Column, Integer, String, Boolean, Date, DateTime, JSON, Index
)

from drugstock.db.base import Base

# Dosage-form labels offered by the drug form; stored values are not checked
DRUG_FORMS = (
    "Tablet",
    "Kapsül",
    "Süspansiyon",
    "Ampul",
    "Efervesan",
    "Damlalık",
    "Krem",
    "Jel",
    "Şurup",
)


# -------------------------
# Catalog
# -------------------------
class Drug(Base):
    """
    Current state of one drug.

    units_in_stock is a denormalized counter kept next to the ledger; nothing
    recomputes it from StockTransaction rows, so the two can drift.
    """
    __tablename__ = "drugs"
    __table_args__ = (
        Index("ix_drugs_group", "group"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    group = Column(String(255), nullable=False)
    brand = Column(String(255), nullable=False)

    # ordered list of ingredient names
    active_ingredients = Column(JSON, nullable=False, default=list)

    dosage = Column(String(100), nullable=True)
    form = Column(String(100), nullable=True)
    units_count = Column(Integer, nullable=True)  # units per pack
    units_in_stock = Column(Integer, nullable=False, default=0)  # may go < 0
    expiration_date = Column(Date, nullable=True)
    is_emergency = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    @property
    def units_per_pack(self) -> int:
        return self.units_count or 1

    @property
    def pack_count(self) -> int:
        if (self.units_in_stock or 0) <= 0:
            return 0
        return self.units_in_stock // self.units_per_pack

    @property
    def leftover_units(self) -> int:
        return (self.units_in_stock or 0) - self.pack_count * self.units_per_pack

    def expired_as_of(self, today: date) -> bool:
        """Expired once the expiration month is behind the current month."""
        exp = self.expiration_date
        if exp is None:
            return False
        return (exp.year, exp.month) < (today.year, today.month)

    @property
    def is_expired(self) -> bool:
        return self.expired_as_of(date.today())


# -------------------------
# Stock Transactions
# -------------------------
class StockTransaction(Base):
    """
    Append-only ledger row. drug_id has no FK: deleting a drug keeps its
    history readable.
    """
    __tablename__ = "stock_transactions"
    __table_args__ = (
        Index("ix_stock_txn_drug_time", "drug_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    drug_id = Column(Integer, nullable=False, index=True)
    delta = Column(Integer, nullable=False)  # +IN / -OUT
    reason = Column(String(255), nullable=True)
    user_id = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
