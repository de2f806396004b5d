"""Turn decoded, untrusted payload values into total domain records.

Each nested shape has a builder that accepts any raw node and always returns
a fully-populated record. Builders compose bottom-up (address into KYC into
customer). Normalization never raises: wrong-typed or missing values fall
back to defaults, and list elements that are not objects are dropped.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

from payload.metrics import record_default, record_dropped

from .models import Account, Address, ContactDetails, Customer, Kyc, Offer, RecordId

T = TypeVar("T")


def _ident(value: Any) -> RecordId | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value:
        return value
    return None


def _reference_id(value: Any) -> RecordId | None:
    """Collapse a back-reference (full object or bare id) to its id."""
    if isinstance(value, dict):
        return _ident(value.get("id"))
    return _ident(value)


class _Fields:
    """Typed reads from one raw object node.

    Defaults are only counted when the node itself was an object; a missing
    parent has already been counted by its own parent.
    """

    def __init__(self, record: str, node: Any) -> None:
        self._record = record
        self._present = isinstance(node, dict)
        self._node: dict[str, Any] = node if self._present else {}

    def _defaulted(self, key: str) -> None:
        if self._present:
            record_default(self._record, key)

    def raw(self, key: str) -> Any:
        return self._node.get(key)

    def ident(self, key: str) -> RecordId | None:
        return _ident(self._node.get(key))

    def text(self, key: str) -> str:
        value = self._node.get(key)
        if isinstance(value, str):
            return value
        self._defaulted(key)
        return ""

    def number(self, key: str) -> float:
        value = self._node.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            try:
                return float(value)
            except OverflowError:
                # Integers beyond the float range.
                pass
        self._defaulted(key)
        return 0

    def nested(self, key: str) -> Any:
        value = self._node.get(key)
        if not isinstance(value, dict):
            self._defaulted(key)
        return value

    def items(self, key: str) -> list[Any]:
        value = self._node.get(key)
        if isinstance(value, list):
            return value
        self._defaulted(key)
        return []


def _each(items: list[Any], build: Callable[[Any], T], field: str) -> list[T]:
    built: list[T] = []
    for item in items:
        if not isinstance(item, dict):
            record_dropped(field)
            continue
        built.append(build(item))
    return built


def build_address(node: Any) -> Address:
    fields = _Fields("address", node)
    return Address(
        id=fields.ident("id"),
        line1=fields.text("line1"),
        line2=fields.text("line2"),
        street=fields.text("street"),
        city=fields.text("city"),
        state=fields.text("state"),
        country=fields.text("country"),
        zipcode=fields.text("zipcode"),
    )


def build_kyc(node: Any) -> Kyc:
    fields = _Fields("kyc", node)
    return Kyc(
        id=fields.ident("id"),
        dob=fields.text("dob"),
        adhaar=fields.text("adhaar"),
        pan=fields.text("pan"),
        address=build_address(fields.nested("address")),
    )


def build_contact_details(node: Any) -> ContactDetails:
    fields = _Fields("contact_details", node)
    return ContactDetails(
        id=fields.ident("id"),
        email=fields.text("email"),
        phone_no=fields.text("phoneNo"),
    )


def build_account(node: Any) -> Account:
    fields = _Fields("account", node)
    return Account(
        id=fields.ident("id"),
        number=fields.text("number"),
        balance=fields.number("balance"),
        account_type=fields.text("type"),
        customer_id=_reference_id(fields.raw("customer")),
    )


def build_offer(node: Any) -> Offer:
    fields = _Fields("offer", node)
    customer_ids: list[RecordId] = []
    for customer in fields.items("customers"):
        customer_id = _reference_id(customer)
        if customer_id is None:
            record_dropped("offer.customers")
            continue
        customer_ids.append(customer_id)
    return Offer(
        id=fields.ident("id"),
        offer_type=fields.text("offerType"),
        description=fields.text("description"),
        valid_till=fields.text("validTill"),
        created_at=fields.text("createdAt"),
        customer_ids=customer_ids,
    )


def build_customer(node: Any) -> Customer:
    fields = _Fields("customer", node)
    return Customer(
        id=fields.ident("id"),
        name=fields.text("name"),
        password=fields.text("pass"),
        contact_details=build_contact_details(fields.nested("contactDetails")),
        kyc=build_kyc(fields.nested("kyc")),
        accounts=_each(fields.items("accounts"), build_account, "customer.accounts"),
        offers=_each(fields.items("offers"), build_offer, "customer.offers"),
    )


def normalize_customer(value: Any) -> Customer | None:
    """Return a total ``Customer``, or ``None`` when the payload was ``null``."""
    if value is None:
        return None
    return build_customer(value)


def normalize_customers(value: Any) -> list[Customer]:
    if not isinstance(value, list):
        return []
    return _each(value, build_customer, "customers")


def normalize_offer(value: Any) -> Offer | None:
    if value is None:
        return None
    return build_offer(value)


def normalize_offers(value: Any) -> list[Offer]:
    if not isinstance(value, list):
        return []
    return _each(value, build_offer, "offers")
