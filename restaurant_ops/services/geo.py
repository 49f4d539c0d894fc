"""Conversion between the public ``{latitude, longitude}`` shape and the
stored ``[longitude, latitude]`` pair.

Both directions are idempotent: a value that is already in the target shape is
returned unchanged, so a zone read back and saved again never gets its axes
swapped twice.
"""
from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from typing import Any

from restaurant_ops.core.errors import ValidationError


def _as_number(value: Any, *, index: int, field: str) -> float:
    # bool é subclasse de int, mas não é coordenada
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"coordinates[{index}].{field} must be a number")
    number = float(value)
    if not math.isfinite(number):
        raise ValidationError(f"coordinates[{index}].{field} must be a finite number")
    return number


def _is_pair(point: Any) -> bool:
    return isinstance(point, (list, tuple)) and not isinstance(point, str)


def to_storage_format(point: Any, index: int = 0) -> list[float]:
    """Return ``[lng, lat]`` for a public mapping or an already-stored pair."""
    if isinstance(point, Mapping):
        if point.get("latitude") is None or point.get("longitude") is None:
            raise ValidationError(f"coordinates[{index}] requires latitude and longitude")
        lat = _as_number(point["latitude"], index=index, field="latitude")
        lng = _as_number(point["longitude"], index=index, field="longitude")
        return [lng, lat]

    if _is_pair(point):
        if len(point) != 2:
            raise ValidationError(f"coordinates[{index}] must have exactly 2 values")
        lng = _as_number(point[0], index=index, field="longitude")
        lat = _as_number(point[1], index=index, field="latitude")
        return [lng, lat]

    raise ValidationError(f"coordinates[{index}] must be an object with latitude and longitude")


def to_public_format(point: Any, index: int = 0) -> dict[str, float]:
    """Return ``{"latitude", "longitude"}`` for a stored pair or a public mapping."""
    if isinstance(point, Mapping):
        lng, lat = to_storage_format(point, index)
        return {"latitude": lat, "longitude": lng}

    if _is_pair(point):
        if len(point) != 2:
            raise ValidationError(f"coordinates[{index}] must have exactly 2 values")
        lng = _as_number(point[0], index=index, field="longitude")
        lat = _as_number(point[1], index=index, field="latitude")
        return {"latitude": lat, "longitude": lng}

    raise ValidationError(f"coordinates[{index}] must be a [longitude, latitude] pair")


def coordinates_to_storage(points: Iterable[Any] | None) -> list[list[float]]:
    return [to_storage_format(point, index) for index, point in enumerate(points or [])]


def coordinates_to_public(points: Iterable[Any] | None) -> list[dict[str, float]]:
    return [to_public_format(point, index) for index, point in enumerate(points or [])]
