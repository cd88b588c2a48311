"""Batch-RPC envelope used by every procedure.

Clients send input either as a POST body or, for queries, as a JSON-encoded
``input`` query parameter. Both may be wrapped in the batch form
``{"0": {"json": {...}}}``. Responses are always wrapped as
``[{"result": {"data": {"json": payload}}}]``; faults that prevent producing a
payload use ``[{"error": {"message": ..., "code": ...}}]``.
"""

import json
from typing import Annotated, Any

from fastapi import Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


class BadInputError(Exception):
    """The request input could not be decoded as JSON."""


def unwrap_input(raw: Any) -> dict[str, Any]:
    """Strip the batch and ``json`` wrappers from a decoded input value.

    A scalar input (for example a bare record id) is returned as ``{"id": value}``.
    """
    if isinstance(raw, dict) and set(raw) == {"0"}:
        raw = raw["0"]
    if isinstance(raw, dict) and set(raw) <= {"json", "meta"} and "json" in raw:
        raw = raw["json"]
    if raw is None:
        return {}
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, (str, int)):
        return {"id": raw}
    msg = "Input must be a JSON object"
    raise BadInputError(msg)


def _decode(text: str | bytes) -> Any:
    try:
        return json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        msg = f"Input is not valid JSON: {e}"
        raise BadInputError(msg) from e


async def trpc_input(request: Request) -> dict[str, Any]:
    """Read procedure input from the query string (GET) or the body (other methods)."""
    if request.method == "GET":
        if "input" in request.query_params:
            return unwrap_input(_decode(request.query_params["input"]))
        return dict(request.query_params)
    body = await request.body()
    if not body.strip():
        return {}
    return unwrap_input(_decode(body))


TrpcInput = Annotated[dict[str, Any], Depends(trpc_input)]


def envelope(payload: Any) -> list[dict[str, Any]]:
    """Wrap a procedure result in the success envelope."""
    return [{"result": {"data": {"json": jsonable_encoder(payload, by_alias=True)}}}]


def error_envelope(message: str, code: str, status_code: int) -> JSONResponse:
    """Build the envelope for a fault that produced no structured payload."""
    return JSONResponse(
        status_code=status_code,
        content=[{"error": {"message": message, "code": code}}],
    )
