# drugstock/db/base.py
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """All DrugStock tables (users, drugs, stock ledger) inherit from this."""
    pass
