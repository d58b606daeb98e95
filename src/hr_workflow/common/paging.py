from __future__ import annotations

from flask import request

from ..core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE


def page_limit() -> tuple[int, int]:
    """``?page=&limit=`` clamped to sane values; garbage falls back to defaults."""
    try:
        page = max(int(request.args.get("page", 1)), 1)
    except ValueError:
        page = 1
    try:
        size = int(request.args.get("limit", DEFAULT_PAGE_SIZE))
        size = max(1, min(size, MAX_PAGE_SIZE))
    except ValueError:
        size = DEFAULT_PAGE_SIZE
    return page, size


def sort_param(allowed, default: str) -> tuple[str, bool]:
    """``?sort=-priority`` => ``("priority", True)`` (descending). Unknown keys use the default."""
    raw = (request.args.get("sort") or "").strip()
    if not raw:
        return default, True
    descending = raw.startswith("-")
    key = raw.lstrip("-+")
    if key not in allowed:
        return default, True
    return key, descending
