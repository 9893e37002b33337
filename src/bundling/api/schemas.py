"""Pydantic request/response schemas for the Bundling API.

Request bodies are validated here, then translated into bundling commands
or service calls by the routers.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Bundle schemas
# ---------------------------------------------------------------------------
class ComponentSchema(BaseModel):
    variant_id: str
    quantity: int = Field(ge=1)


class DefineBundleRequest(BaseModel):
    shop_id: str
    name: str = Field(min_length=1, max_length=255)
    parent_variant_id: str
    components: list[ComponentSchema] = Field(min_length=1)
    expand_on_pick: bool = False


class UpdateBundleRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    components: list[ComponentSchema] | None = Field(default=None, min_length=1)
    expand_on_pick: bool | None = None


class BundleIdResponse(BaseModel):
    bundle_id: str


class BundleResponse(BaseModel):
    bundle_id: str
    shop_id: str
    name: str
    parent_variant_id: str
    expand_on_pick: bool
    components: list[ComponentSchema]


class StatusResponse(BaseModel):
    status: str = "ok"


# ---------------------------------------------------------------------------
# Bin location schemas
# ---------------------------------------------------------------------------
class AssignBinLocationRequest(BaseModel):
    shop_id: str
    variant_id: str
    location: str = Field(min_length=1, max_length=100)


class BinLocationIdResponse(BaseModel):
    bin_location_id: str


class BinLocationLookupResponse(BaseModel):
    locations: dict[str, str | None]


# ---------------------------------------------------------------------------
# Pick list schemas
# ---------------------------------------------------------------------------
class PickListRequest(BaseModel):
    shop_id: str
    start_date: datetime | None = None
    end_date: datetime | None = None
    statuses: list[Literal["unfulfilled", "partially_fulfilled"]] = Field(default_factory=lambda: ["unfulfilled"])
    order_ids: list[str] | None = None
    sort_by: Literal["bin_location", "product", "quantity"] = "bin_location"
    sort_direction: Literal["asc", "desc"] = "asc"


class PickListItemSchema(BaseModel):
    variant_id: str
    product_title: str
    variant_title: str
    sku: str | None = None
    quantity: int
    bin_location: str | None = None


class PickListResponse(BaseModel):
    items: list[PickListItemSchema]
    order_count: int
    total_items: int
    generated_at: datetime


# ---------------------------------------------------------------------------
# Webhook / gateway schemas
# ---------------------------------------------------------------------------
class ConfigureGatewayRequest(BaseModel):
    should_succeed: bool = True
    failure_reason: str = "Inventory service unavailable"
    fail_adjustments: bool = False


class GatewayConfigResponse(BaseModel):
    gateway: str
    should_succeed: bool
    failure_reason: str
    fail_adjustments: bool
