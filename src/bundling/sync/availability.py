"""Bundle availability arithmetic.

Every sync decision reduces to one of two calculations:

Same-product bundles (Single / 4-Pack / 24-Pack of one product)
    All pack sizes share a base-unit pool.
    availability = floor(base_stock / multiplier)

Mixed bundles (variety packs)
    availability = min(floor(component_stock / component_quantity))

A component with zero stock forces a mixed bundle to zero even when every
other component is plentiful.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass


class InvalidQuantityError(ValueError):
    """Raised when a multiplier or component quantity is not a positive integer."""


@dataclass(frozen=True)
class ComponentStock:
    """Stock on hand for one bundle component and how many go into a bundle."""

    stock: int
    quantity: int


def same_product_availability(base_stock: int, multiplier: int) -> int:
    """Number of complete packs of ``multiplier`` units available from ``base_stock``.

    >>> same_product_availability(48, 24)
    2
    >>> same_product_availability(5, 6)
    0
    """
    if multiplier <= 0:
        raise InvalidQuantityError("Multiplier must be a positive number")
    return base_stock // multiplier


def mixed_bundle_availability(components: Sequence[ComponentStock | Mapping]) -> int:
    """Number of complete variety packs the component stock can assemble.

    An empty component list is a degenerate bundle and yields 0.
    """
    if not components:
        return 0

    availabilities = []
    for component in components:
        stock, quantity = _unpack(component)
        if quantity <= 0:
            raise InvalidQuantityError("Component quantity must be a positive number")
        availabilities.append(stock // quantity)

    return min(availabilities)


def _unpack(component: ComponentStock | Mapping) -> tuple[int, int]:
    if isinstance(component, Mapping):
        return component["stock"], component["quantity"]
    return component.stock, component.quantity
