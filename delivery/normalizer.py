"""
Response Normalizer — merge a live partial snapshot into the fallback shape.

``normalize`` is pure: no I/O, no clock. A delta field replaces the fallback
value only when it is well-typed and passes the model's sanity bounds
(finite, non-negative magnitudes, RSI within [0, 100], known enum labels).
Anything else is treated as absent. Provenance flips to live only when
``current_price`` itself was taken from the delta.
"""
from datetime import datetime
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ValidationError

from common.models import MarketSnapshot, Provenance

PROTECTED_FIELDS = {"provenance", "symbol"}


def _well_typed(current: Any, value: Any) -> bool:
    if isinstance(current, bool):
        return isinstance(value, bool)
    if isinstance(current, (int, float)):
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if isinstance(current, str):
        return isinstance(value, str) and bool(value.strip())
    if isinstance(current, (tuple, list)):
        return isinstance(value, (tuple, list))
    if isinstance(current, datetime):
        return isinstance(value, datetime)
    return False


def _merge(model: BaseModel, delta: Mapping[str, Any]) -> tuple[BaseModel, list[str]]:
    """Return (merged model, dotted paths of applied fields)."""
    fields = type(model).model_fields
    # keys may be attribute names or wire aliases (currentPrice, volume24h)
    names = {name: name for name in fields}
    names.update({field.alias: name for name, field in fields.items() if field.alias})
    updates: dict[str, Any] = {}
    applied: list[str] = []
    for key, value in delta.items():
        name = names.get(key)
        if name is None or name in PROTECTED_FIELDS:
            continue
        current = getattr(model, name)
        if isinstance(current, BaseModel):
            if isinstance(value, Mapping):
                merged, sub = _merge(current, value)
                if sub:
                    updates[name] = merged
                    applied.extend(f"{name}.{path}" for path in sub)
            continue
        if not _well_typed(current, value):
            continue
        try:
            candidate = type(model).model_validate({**model.model_dump(), name: value})
        except ValidationError:
            continue
        updates[name] = getattr(candidate, name)
        applied.append(name)
    if not updates:
        return model, []
    return model.model_copy(update=updates), applied


def normalize(fallback: MarketSnapshot, live_delta: Optional[Mapping[str, Any]], *,
              source: Optional[str] = None,
              calculated_at: Optional[datetime] = None) -> MarketSnapshot:
    if not live_delta:
        return fallback
    merged, applied = _merge(fallback, live_delta)
    if "current_price" not in applied:
        return merged
    provenance = Provenance(
        is_live_data=True,
        source=source or fallback.provenance.source,
        calculated_at=calculated_at or fallback.provenance.calculated_at,
    )
    return merged.model_copy(update={"provenance": provenance})
