from __future__ import annotations

import math
from typing import Any, Optional

from ..core.exceptions import InvalidCoordinate, ValidationError


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def optional_text(value: Optional[str]) -> Optional[str]:
    """Strip text input; blank becomes None."""
    return (value or "").strip() or None


def require_coordinate(value: Any, field_name: str, *, bound: float) -> float:
    if value is None or value == "":
        raise ValidationError("Location is required")
    if isinstance(value, bool):
        raise InvalidCoordinate(f"{field_name} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidCoordinate(f"{field_name} must be a number")
    if not math.isfinite(number) or not -bound <= number <= bound:
        raise InvalidCoordinate(f"{field_name} must be between {-bound:g} and {bound:g}")
    return number


def require_latitude(value: Any) -> float:
    return require_coordinate(value, "Latitude", bound=90.0)


def require_longitude(value: Any) -> float:
    return require_coordinate(value, "Longitude", bound=180.0)
