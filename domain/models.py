"""Fully-defaulted domain records.

Every field has a default so a record built from a sparse payload can be
traversed without null checks. Identifier fields are the only optional
values. Back-references to a parent are held as ids, never as nested
records, so every record serializes as a tree.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

RecordId = int | str


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


class Address(_Record):
    id: RecordId | None = None
    line1: str = ""
    line2: str = ""
    street: str = ""
    city: str = ""
    state: str = ""
    country: str = ""
    zipcode: str = ""


class Kyc(_Record):
    id: RecordId | None = None
    dob: str = ""
    adhaar: str = ""
    pan: str = ""
    address: Address = Field(default_factory=Address)


class ContactDetails(_Record):
    id: RecordId | None = None
    email: str = ""
    phone_no: str = ""


class Account(_Record):
    id: RecordId | None = None
    number: str = ""
    balance: float = 0
    account_type: str = Field("", alias="type")
    customer_id: RecordId | None = None


class Offer(_Record):
    id: RecordId | None = None
    offer_type: str = ""
    description: str = ""
    valid_till: str = ""
    created_at: str = ""
    customer_ids: list[RecordId] = Field(default_factory=list)


class Customer(_Record):
    id: RecordId | None = None
    name: str = ""
    password: str = Field("", alias="pass")
    contact_details: ContactDetails = Field(default_factory=ContactDetails)
    kyc: Kyc = Field(default_factory=Kyc)
    accounts: list[Account] = Field(default_factory=list)
    offers: list[Offer] = Field(default_factory=list)
