"""Decode and normalize dashboard API responses on the client side."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import httpx

from api.config import client_base_url, client_timeout_seconds
from api.logging_setup import log_outcome
from domain import (
    Customer,
    Offer,
    normalize_customer,
    normalize_customers,
    normalize_offer,
    normalize_offers,
)
from payload import decode

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class IntegrationError:
    """Client-side failure to turn a response body into a domain record."""

    message: str
    kind: str = "decode_failed"


@dataclass(frozen=True)
class ReceiveResult(Generic[T]):
    ok: bool
    record: T | None
    error: IntegrationError | None


class PayloadDecodeError(Exception):
    """Raised by ``CustomerApiClient`` when a response body could not be repaired."""


class RecordNotFoundError(LookupError):
    """Raised when the upstream answered with an empty record."""


def receive(raw: str | bytes | None, normalize: Callable[[Any], T]) -> ReceiveResult[T]:
    """Decode ``raw`` and hand the value to ``normalize``.

    Undecodable payloads are never normalized; the failure carries the last
    parser diagnostic.
    """
    decoded = decode(raw)
    if not decoded.ok:
        return ReceiveResult(
            ok=False,
            record=None,
            error=IntegrationError(message=str(decoded.error)),
        )
    return ReceiveResult(ok=True, record=normalize(decoded.value), error=None)


def receive_customer(raw: str | bytes | None) -> ReceiveResult[Customer | None]:
    return receive(raw, normalize_customer)


def receive_customers(raw: str | bytes | None) -> ReceiveResult[list[Customer]]:
    return receive(raw, normalize_customers)


def receive_offer(raw: str | bytes | None) -> ReceiveResult[Offer | None]:
    return receive(raw, normalize_offer)


def receive_offers(raw: str | bytes | None) -> ReceiveResult[list[Offer]]:
    return receive(raw, normalize_offers)


def _unwrap(result: ReceiveResult[T], path: str) -> T:
    if not result.ok:
        message = result.error.message if result.error else "Failed to parse server response"
        logger.error("Undecodable response body", extra={"path": path, "error": message})
        raise PayloadDecodeError(message)
    return result.record  # type: ignore[return-value]


class CustomerApiClient:
    """Async client for the customer/offer API that tolerates malformed bodies."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or client_base_url()).rstrip("/")
        self._timeout = timeout if timeout is not None else client_timeout_seconds()
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url, timeout=self._timeout, transport=self._transport
        )

    async def _get(self, path: str, *, no_cache: bool = False) -> bytes:
        params: dict[str, int] = {}
        headers: dict[str, str] = {"Accept": "application/json"}
        if no_cache:
            # Cache-busting timestamp in milliseconds.
            params["t"] = int(time.time() * 1000)
            headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
            headers["Pragma"] = "no-cache"
        async with self._client() as client:
            response = await client.get(path, params=params, headers=headers)
            response.raise_for_status()
            return response.content

    async def fetch_customers(self) -> list[Customer]:
        raw = await self._get("/customers", no_cache=True)
        customers = _unwrap(receive_customers(raw), "/customers")
        log_outcome(
            logger,
            "Fetched customers",
            has_data=bool(customers),
            extra={"count": len(customers)},
        )
        return customers

    async def fetch_customer(self, customer_id: int) -> Customer:
        path = f"/customers/{customer_id}"
        customer = _unwrap(receive_customer(await self._get(path, no_cache=True)), path)
        if customer is None:
            raise RecordNotFoundError(f"Customer with id {customer_id} not found or data is invalid")
        return customer

    async def fetch_customer_offers(self, customer_id: int) -> list[Offer]:
        path = f"/customers/{customer_id}/offers"
        return _unwrap(receive_offers(await self._get(path, no_cache=True)), path)

    async def fetch_offers(self) -> list[Offer]:
        return _unwrap(receive_offers(await self._get("/offers")), "/offers")

    async def fetch_active_offers(self) -> list[Offer]:
        return _unwrap(receive_offers(await self._get("/offers/active")), "/offers/active")

    async def fetch_offer(self, offer_id: int) -> Offer:
        path = f"/offers/{offer_id}"
        offer = _unwrap(receive_offer(await self._get(path)), path)
        if offer is None:
            raise RecordNotFoundError(f"Offer with id {offer_id} not found")
        return offer

    async def create_customer(self, customer: Customer) -> Customer:
        payload = customer.model_dump(mode="json", by_alias=True, exclude_none=True)
        async with self._client() as client:
            response = await client.post(
                "/customers", json=payload, headers={"Accept": "application/json"}
            )
            response.raise_for_status()
            raw = response.content
        created = _unwrap(receive_customer(raw), "/customers")
        if created is None:
            raise PayloadDecodeError("Failed to normalize customer data")
        return created
