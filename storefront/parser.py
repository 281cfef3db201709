# storefront/parser.py
"""Turn a free-text car description into a validated ``CarRecord``.

Stages run in a fixed order: structured ``key: value`` lines, narrative
inference for whatever is still missing, defaults, title back-fill, the
required-field check and finally integer coercion. A description either
yields a complete record or raises ``ValidationError``; there are no partial
records.
"""
import secrets
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Dict

from .errors import ValidationError
from .inference import infer_from_narrative
from .normalize import NUMERIC_FIELDS, REQUIRED_FIELDS, parse_integer, split_line


@dataclass
class CarRecord:
    brand: str
    model: str
    title: str
    price: int
    year: int
    mileage: int
    engine: str
    trans: str
    fuel: str
    status: str
    stock_no: str

    def to_payload(self) -> Dict[str, object]:
        return asdict(self)


def generate_stock_no(now=None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"AUTO-{now.strftime('%y%m%d')}-{secrets.token_hex(2).upper()}"


def parse_structured(content: str) -> Dict[str, str]:
    fields: Dict[str, str] = {}
    for raw_line in content.splitlines():
        pair = split_line(raw_line)
        if pair:
            key, value = pair
            fields[key] = value
    return fields


def fill_defaults(fields: Dict[str, str]) -> Dict[str, str]:
    title = fields.get("title", "").strip()
    tokens = title.split()
    if title:
        fields.setdefault("brand", tokens[0])
        fields.setdefault("model", " ".join(tokens[1:3]) or title)
    if not fields.get("status"):
        fields["status"] = "available"
    if not fields.get("stock_no"):
        fields["stock_no"] = generate_stock_no()
    return fields


def parse_car_text(content: str) -> CarRecord:
    fields = parse_structured(content)
    infer_from_narrative(content, fields)
    fill_defaults(fields)

    if not fields.get("title"):
        if fields.get("brand") and fields.get("model"):
            fields["title"] = f"{fields['brand']} {fields['model']}"
        else:
            raise ValidationError("Missing required field in description: title")

    for field in REQUIRED_FIELDS:
        if not fields.get(field):
            raise ValidationError(f"Missing required field in description: {field}")

    values = {field: fields[field] for field in REQUIRED_FIELDS}
    for field in NUMERIC_FIELDS:
        values[field] = parse_integer(fields[field], field)
    return CarRecord(
        brand=fields.get("brand") or "Unknown",
        model=fields.get("model") or "Unknown",
        **values,
    )
