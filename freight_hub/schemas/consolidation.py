from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ConsolidationExportRequest(_CamelModel):
    output_dir: str = "consolid_export"
    include_vehicles: bool = True
    include_orders: bool = True
    max_vehicles: int = Field(default=100, ge=1, le=10_000)
    max_orders: int = Field(default=1000, ge=1, le=10_000)


class MixedExportRequest(_CamelModel):
    output_dir: str = "mixed_consolidation_export"
    mock_vehicle_count: int = Field(default=5, ge=1, le=1000)
    max_orders: int = Field(default=10, ge=1, le=10_000)
    format: Literal["json", "csv", "both"] = "both"
    config_name: str = "mixed_consolid"
