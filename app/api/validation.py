"""Validation of inbound multipart fields."""

import json
from typing import Any

from eth_utils import is_address, to_checksum_address

from app.processor.exceptions import ValidationError

_LATITUDE_RANGE = (-90.0, 90.0)
_LONGITUDE_RANGE = (-180.0, 180.0)


def validate_image(content: bytes, max_bytes: int) -> None:
    if not content:
        raise ValidationError("Uploaded image is empty.")
    if len(content) > max_bytes:
        raise ValidationError(f"Uploaded image exceeds the limit of {max_bytes} bytes.")


def parse_coordinates(raw: str | None) -> tuple[str, str]:
    """Parse a JSON ``[lat, lon]`` pair, keeping the caller's textual values."""
    if raw is None or not raw.strip():
        raise ValidationError("location_coordinates is required.")
    try:
        parsed: Any = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"location_coordinates is not valid JSON: {exc.msg}") from exc
    if not isinstance(parsed, list) or len(parsed) != 2:
        raise ValidationError("location_coordinates must be a JSON array of [lat, lon].")
    lat = _coordinate_text(parsed[0], "latitude", _LATITUDE_RANGE)
    lon = _coordinate_text(parsed[1], "longitude", _LONGITUDE_RANGE)
    return (lat, lon)


def _coordinate_text(value: Any, label: str, bounds: tuple[float, float]) -> str:
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise ValidationError(f"{label} must be a number or numeric string.")
    text = str(value).strip()
    try:
        degrees = float(text)
    except ValueError as exc:
        raise ValidationError(f"{label} {text!r} is not a decimal degree value.") from exc
    low, high = bounds
    if not low <= degrees <= high:
        raise ValidationError(f"{label} {text} is outside [{low}, {high}].")
    return text


def validate_recipient(raw: str | None) -> str:
    """Return the recipient as a checksummed ledger address."""
    if raw is None or not raw.strip():
        raise ValidationError("recipient is required.")
    candidate = raw.strip()
    if not is_address(candidate):
        raise ValidationError(f"recipient {candidate!r} is not a valid account address.")
    return to_checksum_address(candidate)
