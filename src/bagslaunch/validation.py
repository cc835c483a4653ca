"""Input checks run before any network call."""

from __future__ import annotations

import dataclasses
import re
from typing import Optional

from .errors import InvalidMediaError, ValidationError
from .types import ImageFile, LaunchRequest, TOTAL_BPS

MAX_IMAGE_BYTES = 15 * 1024 * 1024
ALLOWED_IMAGE_TYPES = frozenset(
    {"image/png", "image/jpeg", "image/jpg", "image/gif", "image/webp"}
)

HANDLE_PATTERN = re.compile(r"^[A-Za-z0-9_]{1,15}$")
_PROFILE_URL = re.compile(r"(?:^|[^A-Za-z0-9])(?:twitter|x)\.com/([A-Za-z0-9_]+)")
_SCHEME = re.compile(r"^https?://", re.IGNORECASE)
_LEADING = re.compile(r"^[\s@]+")


def clean_username(raw: Optional[str]) -> str:
    """Reduce ``@handle`` or a profile URL to the bare handle.

    ``clean_username(clean_username(x)) == clean_username(x)`` for any input.
    """
    if not raw:
        return ""
    text = raw.strip()
    match = _PROFILE_URL.search(text)
    if match:
        return match.group(1)
    text = _SCHEME.sub("", text)
    text = text.split("/", 1)[0]
    return _LEADING.sub("", text).rstrip()


def username_error(username: str) -> Optional[str]:
    """Return why ``username`` is not a valid handle, or ``None``.

    The empty string is valid and means no fee sharing.
    """
    if not username:
        return None
    if not HANDLE_PATTERN.match(username):
        return "Username must be 1-15 characters and contain only letters, numbers, and underscores"
    if username.isdigit():
        return "Username cannot be all numbers"
    return None


def validate_username(username: str) -> None:
    error = username_error(username)
    if error is not None:
        raise ValidationError(f"Invalid username: {error}")


def validate_image(image: ImageFile) -> None:
    if image.size > MAX_IMAGE_BYTES:
        raise InvalidMediaError("File size must be under 15MB")
    if image.content_type.lower() not in ALLOWED_IMAGE_TYPES:
        raise InvalidMediaError("File must be PNG, JPG, JPEG, GIF, or WebP")


def validate_request(request: LaunchRequest) -> LaunchRequest:
    """Check ``request`` and return a copy with trimmed fields and a clean handle."""
    name = request.name.strip()
    symbol = request.symbol.strip()
    if not name or not symbol:
        raise ValidationError("Token name and symbol are required")
    if not request.launch_wallet:
        raise ValidationError("Launch wallet is required")
    if request.initial_buy_lamports < 0:
        raise ValidationError("Initial buy must not be negative")

    username = clean_username(request.username)
    validate_username(username)
    if username:
        if request.creator_bps < 0 or request.claimer_bps < 0:
            raise ValidationError("Fee shares must not be negative")
        if request.creator_bps + request.claimer_bps != TOTAL_BPS:
            raise ValidationError(
                f"Fee split must add up to {TOTAL_BPS} bps, "
                f"got {request.creator_bps} + {request.claimer_bps}"
            )
    if request.image is not None:
        validate_image(request.image)

    return dataclasses.replace(
        request,
        name=name,
        symbol=symbol,
        description=request.description.strip(),
        username=username,
    )
