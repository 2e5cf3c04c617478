"""Remote Fetch Adapter — wraps httpx.AsyncClient with decoding and error mapping.

Invariants:
    - Exactly one attempt per call: no retry, no backoff
    - No response (connect, DNS, timeout) → NetworkError
    - Failure status → ServerError(status, server message when present)
    - Unexpected body shape → DecodeError
    - JSON numbers are parsed as Decimal, never float
    - Never touches a cache: returns decoded records or raises

Design Decisions:
    - Wrapper over raw client: isolates transport details from the stores
    - Pydantic TypeAdapter for decoding: the same models validate records and lists
    - Retry policy, if any, belongs to the caller
"""

import json
import logging
from decimal import Decimal
from typing import Any, TypeVar

import httpx
import pydantic
from pydantic import TypeAdapter

from savings_client.core.domain_types import EntityKind, Operation
from savings_client.core.errors import (
    DecodeError, ErrorContext, NetworkError, ServerError,
)
from savings_client.schemas.requests import Payload

logger = logging.getLogger(__name__)

M = TypeVar("M")


class RemoteFetchAdapter:
    """Single-attempt HTTP operations returning decoded records."""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    @classmethod
    def from_base_url(
        cls,
        base_url: str,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "RemoteFetchAdapter":
        return cls(httpx.AsyncClient(
            base_url=base_url, timeout=timeout_seconds, transport=transport,
        ))

    async def aclose(self) -> None:
        await self.client.aclose()

    # --- Operations -----------------------------------------------------------

    async def list_all(
        self, kind: EntityKind, path: str, model: type[M],
        params: dict[str, Any] | None = None,
    ) -> tuple[M, ...]:
        ctx = _context(kind, Operation.LIST, path)
        response = await self._send("GET", path, ctx, params=params)
        return tuple(self._decode(response, list[model], ctx))

    async def get_by_id(self, kind: EntityKind, path: str, model: type[M]) -> M:
        ctx = _context(kind, Operation.GET_BY_ID, path)
        response = await self._send("GET", path, ctx)
        return self._decode(response, model, ctx)

    async def create(
        self, kind: EntityKind, path: str, payload: Payload | None,
        model: type[M] | None,
    ) -> M | None:
        """POST payload. With model=None the body is not decoded (text acks)."""
        ctx = _context(kind, Operation.CREATE, path)
        response = await self._send("POST", path, ctx, payload=payload)
        return None if model is None else self._decode(response, model, ctx)

    async def update(
        self, kind: EntityKind, path: str, payload: Payload | None,
        model: type[M] | None,
    ) -> M | None:
        """PUT payload (or an empty object). With model=None the body is not decoded."""
        ctx = _context(kind, Operation.UPDATE, path)
        response = await self._send("PUT", path, ctx, payload=payload, empty_body=True)
        return None if model is None else self._decode(response, model, ctx)

    async def delete(self, kind: EntityKind, path: str) -> None:
        ctx = _context(kind, Operation.DELETE, path)
        await self._send("DELETE", path, ctx)

    async def count(self, kind: EntityKind, path: str, key: str = "count") -> int:
        """GET a {"count": n} object."""
        ctx = _context(kind, Operation.COUNT, path)
        response = await self._send("GET", path, ctx)
        body = self._decode(response, dict[str, int], ctx)
        if key not in body or body[key] < 0:
            raise DecodeError(f"missing or negative '{key}' in count response", ctx)
        return body[key]

    async def fetch_row(self, kind: EntityKind, path: str) -> list:
        """GET a fixed-position array; callers map it to named fields by index."""
        ctx = _context(kind, Operation.FETCH_ROW, path)
        response = await self._send("GET", path, ctx)
        return self._decode(response, list, ctx)

    async def fetch_value(self, kind: EntityKind, path: str, model: type[M]) -> M:
        """GET a bare JSON scalar (e.g. a decimal total)."""
        ctx = _context(kind, Operation.FETCH_ROW, path)
        response = await self._send("GET", path, ctx)
        return self._decode(response, model, ctx)

    # --- Transport ------------------------------------------------------------

    async def _send(
        self,
        method: str,
        path: str,
        ctx: ErrorContext,
        *,
        params: dict[str, Any] | None = None,
        payload: Payload | None = None,
        empty_body: bool = False,
    ) -> httpx.Response:
        body = payload.to_wire() if payload is not None else ({} if empty_body else None)
        try:
            response = await self.client.request(method, path, params=params, json=body)
        except httpx.DecodingError as e:
            raise DecodeError(f"{method} {path}: undecodable response: {e}", ctx) from e
        except httpx.RequestError as e:
            logger.warning(
                f"No response for {method} {path}: {e}",
                extra=_log_extra(ctx),
            )
            raise NetworkError(f"{method} {path} failed: {e}", ctx) from e

        if response.is_error:
            server_message = extract_server_message(response)
            logger.warning(
                f"{method} {path} → {response.status_code}",
                extra={**_log_extra(ctx), "status_code": response.status_code},
            )
            raise ServerError(response.status_code, server_message, ctx)

        logger.debug(
            f"{method} {path} → {response.status_code}",
            extra={**_log_extra(ctx), "status_code": response.status_code},
        )
        return response

    def _decode(self, response: httpx.Response, model: Any, ctx: ErrorContext):
        if not response.content:
            raise DecodeError(f"empty body from {ctx.path}", ctx)
        try:
            data = json.loads(response.text, parse_float=Decimal)
        except ValueError as e:
            raise DecodeError(f"invalid JSON from {ctx.path}: {e}", ctx) from e
        try:
            return TypeAdapter(model).validate_python(data)
        except pydantic.ValidationError as e:
            raise DecodeError(
                f"unexpected shape from {ctx.path}: {e.error_count()} error(s)",
                ctx,
            ) from e


def extract_server_message(response: httpx.Response) -> str | None:
    """Server message from a JSON {message|error} object, a JSON string, or plain text."""
    text = response.text.strip()
    if not text:
        return None
    try:
        body = json.loads(text)
    except ValueError:
        return text
    if isinstance(body, str):
        return body or None
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return None


def _context(kind: EntityKind, operation: Operation, path: str) -> ErrorContext:
    return ErrorContext(entity_kind=kind, operation=operation, path=path)


def _log_extra(ctx: ErrorContext) -> dict:
    return {
        "entity_kind": ctx.entity_kind.value if ctx.entity_kind else None,
        "operation": ctx.operation.value if ctx.operation else None,
    }
