# storefront/normalize.py
"""Key normalization and numeric coercion for ``key: value`` car descriptions."""
import re
from typing import Optional, Tuple

from .errors import ValidationError

REQUIRED_FIELDS = ("title", "price", "year", "mileage", "engine", "trans", "fuel", "status", "stock_no")
NUMERIC_FIELDS = ("price", "year", "mileage")

KEY_ALIASES = {
    "title": "title",
    "标题": "title",
    "车型标题": "title",
    "price": "price",
    "价格": "price",
    "year": "year",
    "年份": "year",
    "mileage": "mileage",
    "里程": "mileage",
    "engine": "engine",
    "发动机": "engine",
    "trans": "trans",
    "transmission": "trans",
    "变速箱": "trans",
    "fuel": "fuel",
    "fuel_type": "fuel",
    "燃油": "fuel",
    "status": "status",
    "状态": "status",
    "stock_no": "stock_no",
    "stock": "stock_no",
    "库存号": "stock_no",
    "brand": "brand",
    "品牌": "brand",
    "model": "model",
    "型号": "model",
}

_SEPARATOR = re.compile(r"[:：]")
_NON_NUMERIC = re.compile(r"[^\d-]")


def normalize_key(key: str) -> str:
    key = key.replace("\ufeff", "").strip().lower()
    return KEY_ALIASES.get(key, key)


def split_line(raw_line: str) -> Optional[Tuple[str, str]]:
    """Split one description line into ``(canonical_key, value)``.

    Blank lines, ``#`` comments, lines without a separator and lines with an
    empty key or value yield ``None``.
    """
    line = raw_line.replace("\ufeff", "").strip()
    if not line or line.startswith("#"):
        return None
    m = _SEPARATOR.search(line)
    if not m:
        return None
    key = normalize_key(line[:m.start()])
    value = line[m.end():].strip()
    if not key or not value:
        return None
    return key, value


def parse_integer(raw_value, key: str) -> int:
    digits = _NON_NUMERIC.sub("", str(raw_value))
    if not digits or digits == "-":
        raise ValidationError(f"Invalid numeric value for {key}: {raw_value}")
    try:
        return int(digits, 10)
    except ValueError:
        raise ValidationError(f"Invalid numeric value for {key}: {raw_value}") from None
