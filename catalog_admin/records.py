"""
Collection names, identifiers and field defaults for catalog records.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Mapping, Optional
from urllib.parse import quote
from uuid import uuid4

USERS = "users"
PRODUCTS = "products"
COURSES = "courses"
COLLECTIONS = (USERS, PRODUCTS, COURSES)

PRODUCT_ID_PREFIX = "prod"
COURSE_ID_PREFIX = "course"


def new_id(prefix: str) -> str:
    # Only 8 hex characters of the UUID are kept, collisions are not checked.
    return f"{prefix}-{uuid4().hex[:8]}"


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2025-01-02T03:04:05.678Z."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def display_date(now: Optional[datetime] = None) -> str:
    """Short US date like "Oct 18, 2026"."""
    now = now or datetime.now()
    return f"{now:%b} {now.day}, {now.year}"


def whatsapp_link(phone: str, greeting: str, title: str) -> str:
    text = quote(f"{greeting} {title}", safe="!*'()")
    return f"https://wa.me/{phone}?text={text}"


_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def parse_comment_count(value) -> int:
    """Leading integer of `value` ("3.7" -> 3, "12abc" -> 12), else 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        try:
            return int(value)
        except (OverflowError, ValueError):
            return 0
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else 0


def new_product(
    fields: Mapping,
    *,
    image: str = "",
    phone: str,
    greeting: str,
) -> dict:
    title = fields.get("title") or ""
    return {
        "id": new_id(PRODUCT_ID_PREFIX),
        "title": title,
        "price": fields.get("price") or "",
        "description": fields.get("description") or "",
        "image": image,
        "whatsappLink": fields.get("whatsappLink")
        or whatsapp_link(phone, greeting, title),
        "createdAt": utc_timestamp(),
    }


def new_course(fields: Mapping, *, image: str = "") -> dict:
    return {
        "id": new_id(COURSE_ID_PREFIX),
        "title": fields.get("title") or "",
        "date": fields.get("date") or display_date(),
        "comments": parse_comment_count(fields.get("comments")),
        "description": fields.get("description") or "",
        "content": fields.get("content") or "",
        "image": image,
        "createdAt": utc_timestamp(),
    }


def product_changes(fields: Mapping) -> dict:
    """Editable product fields present in an update request."""
    changes = {
        key: fields[key]
        for key in ("title", "price", "description", "whatsappLink")
        if fields.get(key) is not None
    }
    changes["updatedAt"] = utc_timestamp()
    return changes


def normalize_for_migration(collection: str, record: Mapping) -> dict:
    """Fill the defaults a remote row needs from a local JSON record."""
    created_at = record.get("createdAt") or utc_timestamp()
    if collection == USERS:
        return {
            "id": record.get("id"),
            "username": record.get("username"),
            "password": record.get("password"),
            "role": record.get("role") or "admin",
            "createdAt": created_at,
        }
    if collection == PRODUCTS:
        return {
            "id": record.get("id"),
            "title": record.get("title"),
            "price": record.get("price") or "",
            "description": record.get("description") or "",
            "image": record.get("image") or "",
            "whatsappLink": record.get("whatsappLink") or "",
            "createdAt": created_at,
        }
    if collection == COURSES:
        return {
            "id": record.get("id"),
            "title": record.get("title"),
            "date": record.get("date") or "",
            "comments": parse_comment_count(record.get("comments")),
            "description": record.get("description") or "",
            "content": record.get("content") or "",
            "image": record.get("image") or "",
            "createdAt": created_at,
        }
    raise ValueError(f"Unknown collection: {collection}")
