"""Pick list aggregation: pure functions over order line items.

The pick list answers "what do I pull off the shelves, and where is it?"
for a set of open orders. Line items for bundles flagged expand-on-pick are
replaced by their components, identical variants are merged, each variant
is joined with its bin, and the list is sorted for a walk through the
warehouse.
"""

import csv
import io
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum

UNKNOWN_PRODUCT = "Unknown Product"
UNKNOWN_VARIANT = "Unknown Variant"
DEFAULT_VARIANT = "Default"

CSV_HEADER = ["Product", "Variant", "SKU", "Quantity", "Bin Location"]


class SortField(Enum):
    BIN_LOCATION = "bin_location"
    PRODUCT = "product"
    QUANTITY = "quantity"


class SortDirection(Enum):
    ASC = "asc"
    DESC = "desc"


class FulfillmentStatus(Enum):
    UNFULFILLED = "unfulfilled"
    PARTIALLY_FULFILLED = "partially_fulfilled"


@dataclass(frozen=True)
class PickListFilters:
    """Which orders to pick.

    ``order_ids`` is an allow-list; when given, only those orders are used.
    """

    start_date: datetime | None = None
    end_date: datetime | None = None
    statuses: tuple[FulfillmentStatus, ...] = (FulfillmentStatus.UNFULFILLED,)
    order_ids: tuple[str, ...] | None = None


@dataclass(frozen=True)
class OrderLineItem:
    variant_id: str
    product_title: str
    variant_title: str
    sku: str | None
    quantity: int


@dataclass(frozen=True)
class VariantDetails:
    product_title: str
    variant_title: str
    sku: str | None = None


@dataclass(frozen=True)
class PickListItem:
    variant_id: str
    product_title: str
    variant_title: str
    sku: str | None
    quantity: int
    bin_location: str | None = None


@dataclass(frozen=True)
class PickListResult:
    items: list[PickListItem] = field(default_factory=list)
    order_count: int = 0
    total_items: int = 0
    generated_at: datetime = field(default_factory=lambda: datetime.now(UTC))


def expand_bundles(line_items, expandable, variant_details) -> list[OrderLineItem]:
    """Replace expand-on-pick bundle lines by their components.

    Args:
        line_items: ``OrderLineItem`` sequence, in order.
        expandable: bundles flagged expand-on-pick, keyed by parent variant id.
            Each needs ``components`` with ``variant_id`` and ``quantity``.
        variant_details: ``VariantDetails`` keyed by component variant id.

    One level only: a component that is itself a bundle parent is not expanded
    again.
    """
    expanded = []
    for item in line_items:
        bundle = expandable.get(str(item.variant_id))
        if bundle is None:
            expanded.append(item)
            continue

        for component in bundle.components:
            component_id = str(component.variant_id)
            details = variant_details.get(component_id)
            expanded.append(
                OrderLineItem(
                    variant_id=component_id,
                    product_title=details.product_title if details else UNKNOWN_PRODUCT,
                    variant_title=details.variant_title if details else UNKNOWN_VARIANT,
                    sku=details.sku if details else None,
                    quantity=item.quantity * component.quantity,
                )
            )
    return expanded


def aggregate_line_items(items) -> list[OrderLineItem]:
    """Merge line items per variant, in first-seen order.

    The first occurrence's titles and SKU are kept; quantities are summed.
    """
    merged: dict[str, OrderLineItem] = {}
    for item in items:
        key = str(item.variant_id)
        existing = merged.get(key)
        if existing is None:
            merged[key] = item
        else:
            merged[key] = replace(existing, quantity=existing.quantity + item.quantity)
    return list(merged.values())


def attach_bin_locations(items, locations) -> list[PickListItem]:
    return [
        PickListItem(
            variant_id=item.variant_id,
            product_title=item.product_title,
            variant_title=item.variant_title,
            sku=item.sku,
            quantity=item.quantity,
            bin_location=locations.get(str(item.variant_id)),
        )
        for item in items
    ]


def sort_items(items, field=SortField.BIN_LOCATION, direction=SortDirection.ASC) -> list[PickListItem]:
    """Sort a pick list. All orderings are stable.

    - bin location: by location, case-insensitive; items with no location
      stay at the end in both directions
    - product: by product title, then variant title
    - quantity: by quantity only
    """
    field = SortField(field)
    reverse = SortDirection(direction) is SortDirection.DESC

    if field is SortField.BIN_LOCATION:
        located = [i for i in items if i.bin_location]
        unlocated = [i for i in items if not i.bin_location]
        return sorted(located, key=lambda i: i.bin_location.casefold(), reverse=reverse) + unlocated

    if field is SortField.PRODUCT:
        return sorted(
            items,
            key=lambda i: (i.product_title.casefold(), i.variant_title.casefold()),
            reverse=reverse,
        )

    return sorted(items, key=lambda i: i.quantity, reverse=reverse)


def total_quantity(items) -> int:
    return sum(item.quantity for item in items)


def export_csv(items) -> str:
    """Render a pick list as CSV.

    Rows are separated by ``\\n`` with no trailing newline. Fields containing a
    comma, quote or newline are quoted, with embedded quotes doubled.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    writer.writerow(CSV_HEADER)
    for item in items:
        writer.writerow(
            [
                item.product_title,
                item.variant_title,
                item.sku or "",
                str(item.quantity),
                item.bin_location or "",
            ]
        )
    return buffer.getvalue().rstrip("\n")
