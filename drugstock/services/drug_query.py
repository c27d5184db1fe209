# FILE: drugstock/services/drug_query.py
"""
Search / filter / sort / paginate over the full drug catalog.

Works on any sequence of Drug-like objects, in their enumeration order, and
has no side effects, so the list route can hand it a full table scan and tests
can hand it plain objects.
"""
from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Any, Callable, Dict, List, Sequence, Tuple

from drugstock.schemas.drug import DrugListQuery
from drugstock.utils.text import collation_key, icontains

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _timestamp(d: date | datetime | None) -> float:
    """Seconds since epoch; a missing date counts as epoch zero."""
    if d is None:
        return 0.0
    if not isinstance(d, datetime):
        d = datetime.combine(d, time.min)
    if d.tzinfo is None:
        d = d.replace(tzinfo=timezone.utc)
    return (d - _EPOCH).total_seconds()


def ingredients_of(drug: Any) -> List[str]:
    return list(getattr(drug, "active_ingredients", None) or [])


_SORT_KEYS: Dict[str, Callable[[Any], Any]] = {
    "name": lambda d: collation_key(d.name),
    "group": lambda d: collation_key(d.group),
    "brand": lambda d: collation_key(d.brand),
    "form": lambda d: collation_key(d.form or ""),
    "unitsInStock": lambda d: d.units_in_stock or 0,
    "expirationDate": lambda d: _timestamp(d.expiration_date),
}


def matches_search(drug: Any, term: str) -> bool:
    """
    Case-insensitive substring match on name, brand, group, form or any
    active ingredient.
    """
    fields = (drug.name, drug.brand, drug.group, drug.form or "")
    if any(icontains(f, term) for f in fields):
        return True
    return any(icontains(i, term) for i in ingredients_of(drug))


def has_ingredient(drug: Any, ingredient: str) -> bool:
    """Exact, case-sensitive membership in the ingredient list."""
    return ingredient in ingredients_of(drug)


def sort_drugs(drugs: Sequence[Any], sort_field: str, sort_order: str = "asc") -> List[Any]:
    # sorted() is stable for reverse=True too, so ties keep enumeration order
    key = _SORT_KEYS.get(sort_field)
    if key is None:
        raise ValueError(f"Unsupported sort field: {sort_field}")
    return sorted(drugs, key=key, reverse=(sort_order == "desc"))


def paginate(rows: Sequence[Any], page: int, page_size: int) -> List[Any]:
    skip = (page - 1) * page_size
    return list(rows[skip:skip + page_size])


def query_drugs(drugs: Sequence[Any], params: DrugListQuery) -> Tuple[List[Any], int]:
    """
    Returns (page_items, total) where total counts every record that passed
    the filters, independent of the page requested.
    """
    filtered: List[Any] = list(drugs)

    if params.search:
        filtered = [d for d in filtered if matches_search(d, params.search)]

    if params.ingredient:
        filtered = [d for d in filtered if has_ingredient(d, params.ingredient)]

    filtered = sort_drugs(filtered, params.sort_field, params.sort_order)

    total = len(filtered)
    return paginate(filtered, params.page, params.page_size), total
