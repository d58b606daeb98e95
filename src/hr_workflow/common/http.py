from __future__ import annotations

from flask import jsonify


def ok(data=None, status: int = 200, message: str = "", **meta):
    payload = {"success": True, "data": data}
    if message:
        payload["message"] = message
    if meta:
        payload["meta"] = meta
    return jsonify(payload), status


def fail(message: str = "Bad Request", status: int = 400, code: str = ""):
    payload = {"success": False, "message": message}
    if code:
        payload["code"] = code
    return jsonify(payload), status
