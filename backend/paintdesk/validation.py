from __future__ import annotations
from datetime import datetime
from decimal import Decimal, InvalidOperation
from paintdesk.time_utils import parse_iso_datetime

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, Float, Numeric, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError


# Upper bound for catalog prices; anything above is a typo, not a machine
MAX_PRICE = Decimal("99999999.99")

ORDER_UNITS = {"kg", "litre", "piece", "can"}
SERVICE_PRIORITIES = {"low", "medium", "high", "urgent"}
PAYMENT_TYPES = {"cash", "card", "transfer", "credit"}
PAINT_TYPE_STATUSES = {"active", "inactive"}
MACHINE_STATUSES = {"available", "sold", "inactive"}
CUSTOMER_STATUSES = {"active", "inactive"}
INTERACTION_TYPES = {"call", "visit", "email", "meeting", "other"}
INTERACTION_STATUSES = {"planned", "completed", "cancelled"}


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped or "e" in stripped.lower() or "." in stripped:
                raise ValidationError(f"{col.key} must be an integer")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        raise ValidationError(f"{col.key} must be an integer")

    # Quantities and prices; Float subclasses Numeric, so exclude it here
    if isinstance(coltype, Numeric) and not isinstance(coltype, Float):
        if isinstance(value, bool):
            raise ValidationError(f"{col.key} must be a number")
        try:
            number = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"{col.key} must be a number")
        if not number.is_finite():
            raise ValidationError(f"{col.key} must be a number")
        return number

    if isinstance(coltype, Float):
        if isinstance(value, bool):
            raise ValidationError(f"{col.key} must be a number")
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{col.key} must be a number")

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{col.key} must be a boolean")

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if payload.get(f) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def enforce_choice(patch: dict, field: str, allowed: set[str]) -> None:
    if field in patch and patch[field] is not None and patch[field] not in allowed:
        raise ValidationError(f"{field} must be one of: {', '.join(sorted(allowed))}")


def enforce_rules_price(patch: dict, field: str = "price") -> None:
    if field in patch and patch[field] is not None:
        if patch[field] < 0:
            raise ValidationError(f"{field} must be >= 0")
        if patch[field] > MAX_PRICE:
            raise ValidationError(f"{field} cannot exceed {MAX_PRICE}")


def enforce_rules_paint_order(patch: dict) -> None:
    if "quantity" in patch and (patch["quantity"] is None or patch["quantity"] <= 0):
        raise ValidationError("quantity must be > 0")
    enforce_choice(patch, "unit", ORDER_UNITS)
    enforce_choice(patch, "payment_type", PAYMENT_TYPES)


def enforce_rules_service_request(patch: dict) -> None:
    enforce_choice(patch, "priority", SERVICE_PRIORITIES)


def enforce_rules_paint_type(patch: dict) -> None:
    enforce_rules_price(patch)
    if "stock_quantity" in patch and patch["stock_quantity"] is not None and patch["stock_quantity"] < 0:
        raise ValidationError("stock_quantity must be >= 0")
    enforce_choice(patch, "status", PAINT_TYPE_STATUSES)


def enforce_rules_machine(patch: dict) -> None:
    enforce_rules_price(patch)
    enforce_choice(patch, "status", MACHINE_STATUSES)
    year = patch.get("production_year")
    if year is not None and not (1900 <= year <= 2100):
        raise ValidationError("production_year must be between 1900 and 2100")


def enforce_rules_customer(patch: dict) -> None:
    enforce_choice(patch, "status", CUSTOMER_STATUSES)


def enforce_rules_interaction(patch: dict) -> None:
    enforce_choice(patch, "interaction_type", INTERACTION_TYPES)
    enforce_choice(patch, "status", INTERACTION_STATUSES)
