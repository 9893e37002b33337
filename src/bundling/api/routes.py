"""FastAPI routes for the Bundling domain — webhooks, bundles, bins and pick lists."""

import json
import os
from datetime import UTC, datetime

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response
from protean.utils.globals import current_domain

from bundling.api.schemas import (
    AssignBinLocationRequest,
    BinLocationIdResponse,
    BinLocationLookupResponse,
    BundleIdResponse,
    BundleResponse,
    ComponentSchema,
    ConfigureGatewayRequest,
    DefineBundleRequest,
    GatewayConfigResponse,
    PickListItemSchema,
    PickListRequest,
    PickListResponse,
    StatusResponse,
    UpdateBundleRequest,
)
from bundling.bundle.bundle import Bundle
from bundling.bundle.management import DefineBundle, RemoveBundle, UpdateBundle
from bundling.gateway import FakeInventoryGateway, get_inventory_gateway
from bundling.location.bin_location import BinLocation
from bundling.location.management import AssignBinLocation, ClearBinLocation
from bundling.picklist.aggregation import (
    FulfillmentStatus,
    PickListFilters,
    SortDirection,
    SortField,
    export_csv,
)
from bundling.picklist.generator import PickListGenerator
from bundling.sync.ingress import (
    InvalidSignatureError,
    InventoryUpdateIngress,
    MalformedDeliveryError,
    decode_queue_push,
    decode_webhook,
)

# ---------------------------------------------------------------------------
# Webhook Router
# ---------------------------------------------------------------------------
webhook_router = APIRouter(prefix="/webhooks", tags=["webhooks"])


# Ingress and pick-list generation block on gateway HTTP calls and must stay
# off the event loop.


def _outcome_response(outcome) -> JSONResponse:
    return JSONResponse(status_code=outcome.status_code, content={"outcome": outcome.value})


@webhook_router.post("/inventory")
async def inventory_webhook(request: Request) -> JSONResponse:
    """Direct inventory_levels/update webhook from the platform."""
    body = await request.body()
    try:
        delivery = decode_webhook(body, request.headers, secret=os.environ.get("SHOPIFY_WEBHOOK_SECRET"))
    except InvalidSignatureError:
        raise HTTPException(status_code=401, detail="Invalid webhook signature") from None
    except MalformedDeliveryError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from None

    return _outcome_response(await run_in_threadpool(InventoryUpdateIngress().deliver, delivery))


@webhook_router.post("/inventory/pubsub")
async def inventory_queue_push(request: Request) -> JSONResponse:
    """Inventory webhook relayed through a push subscription."""
    body = await request.body()
    try:
        delivery = decode_queue_push(body)
    except MalformedDeliveryError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from None

    return _outcome_response(await run_in_threadpool(InventoryUpdateIngress().deliver, delivery))


@webhook_router.post("/inventory/gateway/configure", response_model=GatewayConfigResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    """Configure the FakeInventoryGateway behavior (non-production only)."""
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    gateway = get_inventory_gateway()
    if not isinstance(gateway, FakeInventoryGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for FakeInventoryGateway")

    gateway.configure(
        should_succeed=body.should_succeed,
        failure_reason=body.failure_reason,
        fail_adjustments=body.fail_adjustments,
    )
    return GatewayConfigResponse(
        gateway=type(gateway).__name__,
        should_succeed=gateway.should_succeed,
        failure_reason=gateway.failure_reason,
        fail_adjustments=gateway.fail_adjustments,
    )


# ---------------------------------------------------------------------------
# Bundle Router
# ---------------------------------------------------------------------------
bundle_router = APIRouter(prefix="/bundles", tags=["bundles"])


def _components_json(components) -> str:
    return json.dumps([c.model_dump() for c in components])


def _bundle_response(bundle) -> BundleResponse:
    return BundleResponse(
        bundle_id=str(bundle.id),
        shop_id=str(bundle.shop_id),
        name=bundle.name,
        parent_variant_id=str(bundle.parent_variant_id),
        expand_on_pick=bool(bundle.expand_on_pick),
        components=[ComponentSchema(variant_id=str(c.variant_id), quantity=c.quantity) for c in bundle.components],
    )


@bundle_router.post("", status_code=201, response_model=BundleIdResponse)
async def define_bundle(body: DefineBundleRequest) -> BundleIdResponse:
    command = DefineBundle(
        shop_id=body.shop_id,
        name=body.name,
        parent_variant_id=body.parent_variant_id,
        components=_components_json(body.components),
        expand_on_pick=body.expand_on_pick,
    )
    result = current_domain.process(command, asynchronous=False)
    return BundleIdResponse(bundle_id=result)


@bundle_router.get("", response_model=list[BundleResponse])
async def list_bundles(shop_id: str = Query(...)) -> list[BundleResponse]:
    bundles = current_domain.repository_for(Bundle).list_for_shop(shop_id)
    return [_bundle_response(b) for b in bundles]


@bundle_router.get("/{bundle_id}", response_model=BundleResponse)
async def get_bundle(bundle_id: str) -> BundleResponse:
    return _bundle_response(current_domain.repository_for(Bundle).get(bundle_id))


@bundle_router.put("/{bundle_id}", response_model=StatusResponse)
async def update_bundle(bundle_id: str, body: UpdateBundleRequest) -> StatusResponse:
    command = UpdateBundle(
        bundle_id=bundle_id,
        name=body.name,
        components=_components_json(body.components) if body.components is not None else None,
        expand_on_pick=body.expand_on_pick,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="updated")


@bundle_router.delete("/{bundle_id}", response_model=StatusResponse)
async def remove_bundle(bundle_id: str) -> StatusResponse:
    current_domain.process(RemoveBundle(bundle_id=bundle_id), asynchronous=False)
    return StatusResponse(status="removed")


# ---------------------------------------------------------------------------
# Bin Location Router
# ---------------------------------------------------------------------------
bin_location_router = APIRouter(prefix="/bin-locations", tags=["bin-locations"])


@bin_location_router.put("", response_model=BinLocationIdResponse)
async def assign_bin_location(body: AssignBinLocationRequest) -> BinLocationIdResponse:
    command = AssignBinLocation(
        shop_id=body.shop_id,
        variant_id=body.variant_id,
        location=body.location,
    )
    result = current_domain.process(command, asynchronous=False)
    return BinLocationIdResponse(bin_location_id=result)


@bin_location_router.get("", response_model=BinLocationLookupResponse)
async def lookup_bin_locations(
    shop_id: str = Query(...),
    variant_id: list[str] = Query(default=[]),
) -> BinLocationLookupResponse:
    locations = current_domain.repository_for(BinLocation).lookup(shop_id, variant_id)
    return BinLocationLookupResponse(locations=locations)


@bin_location_router.delete("", response_model=StatusResponse)
async def clear_bin_location(shop_id: str = Query(...), variant_id: str = Query(...)) -> StatusResponse:
    current_domain.process(ClearBinLocation(shop_id=shop_id, variant_id=variant_id), asynchronous=False)
    return StatusResponse(status="cleared")


# ---------------------------------------------------------------------------
# Pick List Router
# ---------------------------------------------------------------------------
picklist_router = APIRouter(prefix="/picklists", tags=["picklists"])


def _generate(body: PickListRequest):
    filters = PickListFilters(
        start_date=body.start_date,
        end_date=body.end_date,
        statuses=tuple(FulfillmentStatus(s) for s in body.statuses),
        order_ids=tuple(body.order_ids) if body.order_ids is not None else None,
    )
    return PickListGenerator().generate(
        body.shop_id,
        filters,
        sort_field=SortField(body.sort_by),
        sort_direction=SortDirection(body.sort_direction),
    )


@picklist_router.post("", response_model=PickListResponse)
def generate_pick_list(body: PickListRequest) -> PickListResponse:
    result = _generate(body)
    return PickListResponse(
        items=[
            PickListItemSchema(
                variant_id=str(i.variant_id),
                product_title=i.product_title,
                variant_title=i.variant_title,
                sku=i.sku,
                quantity=i.quantity,
                bin_location=i.bin_location,
            )
            for i in result.items
        ],
        order_count=result.order_count,
        total_items=result.total_items,
        generated_at=result.generated_at,
    )


@picklist_router.post("/export")
def export_pick_list(body: PickListRequest) -> Response:
    result = _generate(body)
    filename = f"pick-list-{datetime.now(UTC).date().isoformat()}.csv"
    return Response(
        content=export_csv(result.items),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
