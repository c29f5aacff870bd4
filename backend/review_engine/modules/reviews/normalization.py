"""Normalization of loosely-typed storefront submissions.

Storefront themes post reviews as JSON, URL-encoded forms or multipart forms
and have used several names for the same field over time. Raw bodies are
mapped onto one canonical field per attribute through :data:`FIELD_ALIASES`
(first present alias wins) and validated before anything is stored.
"""

import math
import re
from dataclasses import dataclass
from typing import Any

from fastapi import Request
from starlette.datastructures import UploadFile

from review_engine.core.exceptions import InvalidInputError

MEDIA_FIELD = "media"

# canonical field -> accepted raw keys, in priority order
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "product_id": ("productId", "product_id"),
    "rating": ("rating",),
    "title": ("title",),
    "first_name": ("firstName", "name", "author_name"),
    "last_name": ("lastName", "family_name", "last_name"),
    "email": ("email", "author_email"),
    "body": ("body", "review"),
    "media_url": ("mediaUrl", "media_url"),
    "product_handle": ("product_handle", "productHandle"),
}

# Signed 64-bit range of the product_id column
_BIGINT_MIN = -(2**63)
_BIGINT_MAX = 2**63 - 1

# ASCII digits only; int() and float() also take underscores and Unicode digits
_INTEGER_RE = re.compile(r"[+-]?\d+", re.ASCII)
_DECIMAL_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)

MIN_RATING = 1
MAX_RATING = 5


@dataclass
class ReviewSubmission:
    """A validated storefront submission."""

    product_id: int
    rating: int
    first_name: str
    body: str
    last_name: str | None = None
    email: str | None = None
    title: str | None = None
    media_url: str | None = None
    product_handle: str | None = None
    media: UploadFile | None = None


async def read_body(request: Request) -> dict[str, Any]:
    """Parse the request body according to its content type.

    JSON objects and forms (URL-encoded or multipart, files kept as
    ``UploadFile``) are returned as dicts. Without a recognised content
    type the body is parsed as JSON on a best-effort basis, ``{}`` on failure.
    """
    content_type = request.headers.get("content-type", "").lower()

    if "application/json" in content_type:
        data = await request.json()
        return data if isinstance(data, dict) else {}

    if (
        "application/x-www-form-urlencoded" in content_type
        or "multipart/form-data" in content_type
    ):
        form = await request.form()
        # Repeated keys: last one wins
        return {key: value for key, value in form.multi_items()}

    try:
        data = await request.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def coerce_scalar(value: Any) -> str:
    """String form of a raw value. Files and containers become ``""``."""
    if isinstance(value, UploadFile):
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def pick(raw: dict[str, Any], field: str) -> str | None:
    """Value of the first present (non-null) alias of ``field``."""
    for alias in FIELD_ALIASES[field]:
        value = raw.get(alias)
        if value is not None:
            return coerce_scalar(value)
    return None


def _optional(raw: dict[str, Any], field: str) -> str | None:
    value = pick(raw, field)
    if value is None:
        return None
    value = value.strip()
    return value or None


def parse_product_id(value: str | None) -> int:
    """Parse a product id, raising InvalidInputError when unusable."""
    if value is None or not value.strip():
        raise InvalidInputError("product_id is required", field="product_id")
    value = value.strip()
    if not _INTEGER_RE.fullmatch(value):
        raise InvalidInputError("Invalid product_id", field="product_id")
    product_id = int(value)
    if not _BIGINT_MIN <= product_id <= _BIGINT_MAX:
        raise InvalidInputError("Invalid product_id", field="product_id")
    return product_id


def parse_rating(value: str | None) -> int:
    """Parse a 1-5 rating. Fractions are truncated after the range check."""
    value = value.strip() if value is not None else ""
    rating = float(value) if _DECIMAL_RE.fullmatch(value) else math.nan
    if not math.isfinite(rating) or not MIN_RATING <= rating <= MAX_RATING:
        raise InvalidInputError("rating must be between 1 and 5", field="rating")
    return int(rating)


def media_file(raw: dict[str, Any]) -> UploadFile | None:
    """The uploaded media file, if the form carries one with a filename."""
    value = raw.get(MEDIA_FIELD)
    if isinstance(value, UploadFile) and (value.filename or value.size):
        return value
    return None


def normalize_submission(raw: dict[str, Any]) -> ReviewSubmission:
    """Validate a raw body into a :class:`ReviewSubmission`.

    Checks run in a fixed order and the first failure is raised:
    product id, rating, then author name and review text. Any ``status``
    key in the body is ignored.
    """
    product_id = parse_product_id(pick(raw, "product_id"))
    rating = parse_rating(pick(raw, "rating"))

    first_name = (pick(raw, "first_name") or "").strip()
    body = (pick(raw, "body") or "").strip()
    if not first_name or not body:
        raise InvalidInputError("name and review body are required")

    return ReviewSubmission(
        product_id=product_id,
        rating=rating,
        first_name=first_name,
        body=body,
        last_name=_optional(raw, "last_name"),
        email=_optional(raw, "email"),
        title=_optional(raw, "title"),
        media_url=_optional(raw, "media_url"),
        product_handle=_optional(raw, "product_handle"),
        media=media_file(raw),
    )
