# storefront/inference.py
"""Best-effort recovery of car fields from free prose.

Only fields that are still missing after the structured ``key: value`` pass
are touched. Each field has an ordered list of candidate patterns and the
first one that matches wins; a field that nothing matches stays unset.
"""
import re
from typing import Dict

_I = re.IGNORECASE

PATTERNS = {
    "price": [
        re.compile(r"(?:price|价格)[^\d]*(\$?\s?[\d,]+)", _I),
        re.compile(r"(\$\s?[\d,]{3,})"),
    ],
    "year": [
        re.compile(r"(?<!\d)(19\d{2}|20\d{2}|21\d{2})(?!\d)"),
    ],
    "mileage": [
        re.compile(r"(?:mileage|里程)[^\d]*(\d[\d,]*)", _I),
        re.compile(r"(\d[\d,]*)\s?(?:km\b|公里|mi\b|miles\b)", _I),
    ],
    "trans": [
        re.compile(r"\b(automatic|manual|cvt|at|mt)\b", _I),
        re.compile(r"(自动|手动)"),
    ],
    "fuel": [
        re.compile(r"\b(gasoline|petrol|diesel|hybrid|electric|ev)\b", _I),
        re.compile(r"(汽油|柴油|混动|电动)"),
    ],
    "engine": [
        re.compile(r"\b(\d\.\dL?\s?[A-Za-z0-9+-]*)\b"),
        re.compile(r"(?:engine|发动机)[:：]?\s*([^\s,，]+)", _I),
    ],
    "status": [
        re.compile(r"\b(available|active|published|sold|hidden)\b", _I),
        re.compile(r"(在售|下架|售出)"),
    ],
    "stock_no": [
        re.compile(r"\b([A-Z]{1,4}-\d{3,8})\b", _I),
    ],
}


def infer_from_narrative(content: str, fields: Dict[str, str]) -> Dict[str, str]:
    """Fill missing entries of ``fields`` in place from ``content`` and return it."""
    text = re.sub(r"\s+", " ", content).strip()
    for field, candidates in PATTERNS.items():
        if fields.get(field):
            continue
        for pattern in candidates:
            m = pattern.search(text)
            if m:
                value = m.group(1).strip()
                fields[field] = value.upper() if field == "stock_no" else value
                break
    return fields
