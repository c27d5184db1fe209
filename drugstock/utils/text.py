# FILE: drugstock/utils/text.py
from __future__ import annotations

import re
import unicodedata
from typing import Iterable, List, Tuple


def clean_str(s: str | None) -> str:
    """Collapse inner whitespace and strip; None -> ""."""
    if not s:
        return ""
    return re.sub(r"\s+", " ", s.strip())


def clean_list(values: Iterable[str] | None) -> List[str]:
    """
    Strip every entry and drop blank ones, keeping order.
    Example: [" Paracetamol ", "", "Codeine"] -> ["Paracetamol", "Codeine"]
    """
    out = []
    for v in values or []:
        v = clean_str(v)
        if v:
            out.append(v)
    return out


def icontains(haystack: str | None, needle: str) -> bool:
    return needle.lower() in (haystack or "").lower()


def collation_key(s: str | None) -> Tuple[str, str, Tuple[bool, ...]]:
    """
    Sort key approximating a locale-aware string comparison:
      1. letters without accents, case-folded   ("Şurup" ~ "surup")
      2. accents, case-folded                   ("surup" < "şurup")
      3. case, lower before upper               ("jel" < "Jel")
    """
    s = s or ""
    decomposed = unicodedata.normalize("NFKD", s)
    primary = "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()
    secondary = decomposed.casefold()
    tertiary = tuple(ch.isupper() for ch in s)
    return primary, secondary, tertiary
