"""
Async client for the marketplace API.

Submissions that cannot reach the server (connection errors, timeouts, 5xx)
are kept in a local ``PendingStore`` and returned marked ``pending=True`` so
the user's input is not lost. They are replayed by ``sync_pending`` and
replaced by the authoritative records on the next successful read.

Status-changing actions (accept, reject, skip, confirm, cancel) are never
guessed locally: a transport failure raises ``RemoteUnavailable`` and the
caller re-reads once the server is reachable again.

Usage:
    async with MarketplaceClient() as client:
        quote = await client.submit_quote(requirement_id, merchant_id, "700", "8,200")
        if quote.pending:
            ...  # "saved locally"
"""
import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

import httpx

from config import MARKETPLACE_API_TIMEOUT, MARKETPLACE_API_URL, PENDING_STORE_PATH
from schemas.orders_schema import OrderOut, TransactionOut
from schemas.quote_schema import QuoteRead
from schemas.requirement_schema import RequirementCreate, RequirementRead, RequirementUpdate
from services import errors, quantity
from services import requirement_lifecycle as lifecycle
from services.errors import DomainError, is_error
from services.pending_store import PendingStore, PendingSubmission

logger = logging.getLogger(__name__)


class RemoteUnavailable(Exception):
    """The marketplace API could not be reached or failed on its side."""


class NegotiationRejected(Exception):
    """The server (or local input normalization) refused the request with a domain error."""

    def __init__(self, error: DomainError):
        super().__init__(f"{error.code}: {error.message}")
        self.error = error

    @property
    def code(self) -> str:
        return self.error.code

    @property
    def kind(self) -> str:
        return self.error.kind

    @classmethod
    def from_response(cls, response: httpx.Response) -> "NegotiationRejected":
        try:
            detail = response.json().get("detail")
        except ValueError:
            detail = response.text

        if isinstance(detail, dict) and "code" in detail:
            extra = {k: v for k, v in detail.items() if k not in ("code", "kind", "message")}
            return cls(DomainError(detail["code"], detail.get("kind", errors.CONFLICT), detail.get("message", ""), extra))

        # request validation failures from FastAPI come back as a list
        kind = errors.VALIDATION if response.status_code == 422 else errors.CONFLICT
        if response.status_code == 404:
            kind = errors.NOT_FOUND
        elif response.status_code == 403:
            kind = errors.FORBIDDEN
        return cls(DomainError(f"HTTP{response.status_code}", kind, str(detail)))


def _unwrap(body):
    """Accept both bare payloads and ``{"data": ...}`` envelopes."""
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return body


def _normalized(raw, field_name: str) -> str:
    value = quantity.normalize_number(raw, field_name)
    if is_error(value):
        raise NegotiationRejected(value)
    return str(value)


class MarketplaceClient:
    def __init__(
        self,
        base_url: str = MARKETPLACE_API_URL,
        timeout: float = MARKETPLACE_API_TIMEOUT,
        store: Optional[PendingStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.store = store if store is not None else PendingStore(PENDING_STORE_PATH)
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> "MarketplaceClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------ #
    # Transport
    # ------------------------------------------------------------------ #
    async def _request(self, method: str, path: str, **kwargs):
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TransportError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise RemoteUnavailable(f"{method} {path}: {exc}") from exc

        if response.status_code >= 500:
            logger.warning("%s %s returned %s", method, path, response.status_code)
            raise RemoteUnavailable(f"{method} {path} returned {response.status_code}")
        if response.status_code >= 400:
            raise NegotiationRejected.from_response(response)
        return _unwrap(response.json())

    async def _send(self, entry: PendingSubmission):
        if entry.kind == "create_requirement":
            return RequirementRead.model_validate(await self._request("POST", "/requirements/", json=entry.payload))
        return QuoteRead.model_validate(
            await self._request("POST", f"/quotes/send/{entry.requirement_id}", json=entry.payload)
        )

    # ------------------------------------------------------------------ #
    # Submissions (fall back to the local pending store)
    # ------------------------------------------------------------------ #
    async def create_requirement(self, buyer_id: UUID, data: Dict[str, Any]) -> RequirementRead:
        payload = RequirementCreate(buyer_id=buyer_id, **data).model_dump(mode="json")
        for name in ("required_quantity", "minimum_quantity", "expected_price"):
            payload[name] = _normalized(payload[name], name)

        entry = PendingSubmission(kind="create_requirement", payload=payload)
        try:
            return await self._send(entry)
        except RemoteUnavailable as exc:
            entry.last_error = str(exc)
            self.store.add(entry)
            return self._local_requirement(entry)

    async def submit_quote(
        self,
        requirement_id: UUID,
        merchant_id: UUID,
        quantity_raw,
        price_raw,
        remarks: Optional[str] = None,
    ) -> QuoteRead:
        payload = {
            "merchant_id": str(merchant_id),
            "quantity": _normalized(quantity_raw, "quantity"),
            "price": _normalized(price_raw, "price"),
            "remarks": remarks or "",
        }
        entry = PendingSubmission(kind="submit_quote", requirement_id=requirement_id, payload=payload)
        try:
            return await self._send(entry)
        except RemoteUnavailable as exc:
            entry.last_error = str(exc)
            self.store.add(entry)
            return self._local_quote(entry)

    @staticmethod
    def _local_requirement(entry: PendingSubmission) -> RequirementRead:
        payload = dict(entry.payload)
        payload["id"] = entry.local_id
        payload["status"] = lifecycle.initial_status(bool(payload.get("is_draft")))
        payload["created_at"] = entry.created_at
        payload["pending"] = True
        return RequirementRead.model_validate(payload)

    @staticmethod
    def _local_quote(entry: PendingSubmission) -> QuoteRead:
        return QuoteRead.model_validate({
            **entry.payload,
            "id": entry.local_id,
            "requirement_id": entry.requirement_id,
            "created_at": entry.created_at,
            "pending": True,
        })

    async def sync_pending(self, requirement_id: Optional[UUID] = None) -> List[NegotiationRejected]:
        """
        Replay locally pending submissions, oldest first.

        Entries the server accepts or refuses are dropped from the store; the
        refusals are returned so the caller can tell the user. Replay stops at
        the first transport failure.
        """
        refused = []
        for entry in self.store.list(requirement_id=requirement_id):
            try:
                record = await self._send(entry)
            except RemoteUnavailable:
                logger.warning("Marketplace still unreachable; %d submissions stay pending", len(self.store))
                break
            except NegotiationRejected as exc:
                self.store.remove(entry.local_id)
                logger.warning("Pending %s %s refused by server: %s", entry.kind, entry.local_id, exc)
                refused.append(exc)
                continue
            self.store.remove(entry.local_id)
            logger.info("Pending %s %s reconciled as %s", entry.kind, entry.local_id, record.id)
        return refused

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #
    async def get_requirement(self, requirement_id: UUID, viewer_id: Optional[UUID] = None) -> Optional[RequirementRead]:
        params = {"viewer_id": str(viewer_id)} if viewer_id else None
        try:
            body = await self._request("GET", f"/requirements/{requirement_id}", params=params)
        except NegotiationRejected as exc:
            if exc.kind == errors.NOT_FOUND:
                return None
            raise
        return RequirementRead.model_validate(body)

    async def get_quotes_for_requirement(
        self,
        requirement_id: UUID,
        view: str = "buyer",
        viewer_id: Optional[UUID] = None,
    ) -> List[QuoteRead]:
        """Authoritative quotes followed by any still-pending local ones."""
        await self.sync_pending(requirement_id)

        params = {"view": view}
        if viewer_id:
            params["viewer_id"] = str(viewer_id)
        root = await self._request("GET", f"/quotes/with-requirement/{requirement_id}", params=params)
        raw_quotes = root.get("quotes") or root.get("Quotes") or []
        quotes = [QuoteRead.model_validate(item) for item in raw_quotes]

        for entry in self.store.list(kind="submit_quote", requirement_id=requirement_id):
            if view == "merchant" and viewer_id and entry.payload.get("merchant_id") != str(viewer_id):
                continue
            quotes.append(self._local_quote(entry))
        return quotes

    async def list_confirmed_orders(self) -> List[TransactionOut]:
        body = await self._request("GET", "/orders/confirmed")
        return [TransactionOut.model_validate(item) for item in body]

    # ------------------------------------------------------------------ #
    # Status-changing actions (no local fallback)
    # ------------------------------------------------------------------ #
    async def update_requirement(self, requirement_id: UUID, buyer_id: UUID, changes: Dict[str, Any]) -> RequirementRead:
        payload = RequirementUpdate(buyer_id=buyer_id, **changes).model_dump(mode="json", exclude_unset=True)
        for name in ("required_quantity", "minimum_quantity", "expected_price"):
            if payload.get(name) is not None:
                payload[name] = _normalized(payload[name], name)
        body = await self._request("PUT", f"/requirements/{requirement_id}", json=payload)
        return RequirementRead.model_validate(body)

    async def accept_quote(self, quote_id: UUID, buyer_id: UUID) -> OrderOut:
        body = await self._request(
            "PATCH", f"/quotes/{quote_id}/respond", json={"buyer_id": str(buyer_id), "action": "accept"}
        )
        return OrderOut.model_validate(body["order"])

    async def reject_quote(self, quote_id: UUID, buyer_id: UUID) -> QuoteRead:
        body = await self._request(
            "PATCH", f"/quotes/{quote_id}/respond", json={"buyer_id": str(buyer_id), "action": "reject"}
        )
        return QuoteRead.model_validate(body["quote"])

    async def skip_requirement(self, requirement_id: UUID, user_id: UUID) -> RequirementRead:
        body = await self._request("POST", f"/requirements/{requirement_id}/skip", json={"user_id": str(user_id)})
        return RequirementRead.model_validate(body)

    async def confirm_order(self, requirement_id: UUID, user_id: UUID) -> OrderOut:
        body = await self._request("POST", f"/orders/{requirement_id}/confirm", json={"user_id": str(user_id)})
        return OrderOut.model_validate(body)

    async def cancel_order(self, requirement_id: UUID, user_id: UUID) -> OrderOut:
        body = await self._request("POST", f"/orders/{requirement_id}/cancel", json={"user_id": str(user_id)})
        return OrderOut.model_validate(body)
