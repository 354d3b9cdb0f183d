from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python; unknown keys pass through."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Money(WireModel):
    amount: float = Field(ge=0)
    currency: str = Field(default="EUR", min_length=3, max_length=3)


class Address(WireModel):
    object_type: str = "address"
    country: str = Field(min_length=2, max_length=2, description="ISO 3166-1 alpha-2")
    city: str
    postal_code: str | None = None
    street: str | None = None
    house_number: str | None = None
    latitude: float | None = None
    longitude: float | None = None


class LoadingPlace(WireModel):
    loading_type: Literal["LOADING", "UNLOADING"]
    address: Address
    earliest_loading_date: str = Field(description="YYYY-MM-DD")
    latest_loading_date: str = Field(description="YYYY-MM-DD")
    start_time: str | None = Field(default=None, description="HH:mm")
    end_time: str | None = Field(default=None, description="HH:mm")


class ContactPerson(WireModel):
    title: str
    first_name: str
    last_name: str
    email: str
    languages: list[str] = Field(default_factory=list)
    business_phone: str | None = None
    mobile_phone: str | None = None
    fax: str | None = None


class CustomerRef(WireModel):
    id: int


class VehicleProperties(WireModel):
    body: list[str]
    type: list[str]
    body_property: list[str] | None = None
    equipment: list[str] | None = None
    load_securing: list[str] | None = None
    swap_body: list[str] | None = None


class ClosedFreightExchangeSetting(WireModel):
    closed_freight_exchange_id: int
    publication_type: Literal["INTERNAL_ONLY", "EXTERNAL_LATER"] = "INTERNAL_ONLY"
    remark: str | None = Field(default=None, max_length=150)
    retention_duration_in_minutes: int | None = None
    publication_date_time: str | None = None


class OfferBase(WireModel):
    customer: CustomerRef
    contact_person: ContactPerson
    vehicle_properties: VehicleProperties
    trackable: bool = False
    accept_quotes: bool = False
    loading_places: list[LoadingPlace] = Field(min_length=1)

    price: Money | None = None
    payment_due_within_days: int | None = Field(default=None, ge=0, le=999)
    additional_information: list[str] | None = None
    public_remark: str | None = None
    internal_remark: str | None = None
    logistics_document_types: list[str] | None = None
    closed_freight_exchange_setting: ClosedFreightExchangeSetting | None = None


class FreightOffer(OfferBase):
    object_type: str = "freightOffer"
    freight_description: str
    length_m: float = Field(alias="length_m", ge=0)
    weight_t: float = Field(alias="weight_t", ge=0)


class VehicleSpaceOffer(OfferBase):
    object_type: str = "VehicleSpaceOffer"
