from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from freight_hub.schemas.offer import FreightOffer, VehicleSpaceOffer
from freight_hub.services.bulk import BulkCreateResult, DeleteAllResult


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FreightBulkRequest(_CamelModel):
    offers: list[FreightOffer] = Field(min_length=1)
    max_concurrent: int | None = Field(default=None, ge=1, le=50)


class VehicleSpaceBulkRequest(_CamelModel):
    offers: list[VehicleSpaceOffer] = Field(min_length=1)
    max_concurrent: int | None = Field(default=None, ge=1, le=50)


class BulkFailureOut(_CamelModel):
    index: int
    error: str


class BulkCreateResults(_CamelModel):
    total: int
    created: int
    failed: int
    created_offers: list[Any] = Field(default_factory=list)
    failures: list[BulkFailureOut] = Field(default_factory=list)

    @classmethod
    def from_result(cls, r: BulkCreateResult) -> "BulkCreateResults":
        return cls(
            total=r.total,
            created=r.created,
            failed=r.failed,
            created_offers=r.created_offers,
            failures=[BulkFailureOut(index=f.index, error=f.error) for f in r.failures],
        )


class BulkCreateResponse(_CamelModel):
    success: bool = True
    message: str
    results: BulkCreateResults
    timestamp: str


class DeleteFailureOut(_CamelModel):
    offer_id: str
    error: str


class DeleteAllResults(_CamelModel):
    total: int
    deleted: int
    failed: int
    skipped: int = 0
    deleted_offers: list[str] = Field(default_factory=list)
    failures: list[DeleteFailureOut] = Field(default_factory=list)

    @classmethod
    def from_result(cls, r: DeleteAllResult) -> "DeleteAllResults":
        return cls(
            total=r.total,
            deleted=r.deleted,
            failed=r.failed,
            skipped=r.skipped,
            deleted_offers=r.deleted_offers,
            failures=[DeleteFailureOut(offer_id=f.offer_id, error=f.error) for f in r.failures],
        )


class DeleteAllResponse(_CamelModel):
    success: bool = True
    message: str
    results: DeleteAllResults
    timestamp: str
