from __future__ import annotations

from flask import jsonify, request

from .paging import Page


def ok(data=None, status: int = 200, **meta):
    payload = {"success": True, "data": data}
    if meta:
        payload["meta"] = meta
    return jsonify(payload), status


def ok_page(page: Page, status: int = 200):
    return ok(
        list(page.items),
        status=status,
        page=page.page,
        per_page=page.per_page,
        total=page.total,
        pages=page.pages,
    )


def fail(message: str = "Bad Request", status: int = 400, code: str | None = None, detail=None):
    err = {"message": message}
    if code:
        err["code"] = code
    if detail:
        err["detail"] = detail
    return jsonify({"success": False, "error": err}), status


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}
