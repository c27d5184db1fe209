# drugstock/models/__init__.py
from .user import User
from .drug import Drug, StockTransaction, DRUG_FORMS

__all__ = [
    "User",
    "Drug",
    "StockTransaction",
    "DRUG_FORMS",
]
