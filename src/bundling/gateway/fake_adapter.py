"""In-memory inventory gateway for development and testing.

Holds a small ledger: which stock item belongs to which variant, and the
available quantity of each stock item per location. Adjustments mutate the
ledger, so a second sync pass sees the first pass's writes.

Every call is recorded in ``calls`` together with its batch size, and the
gateway can be configured to fail:

- ``should_succeed=False``     every call raises GatewayError
- ``fail_adjustments=True``    reads work, adjustments come back with user errors
"""

from bundling.gateway.port import AdjustmentReport, GatewayError, InventoryGateway, StockAdjustment


class FakeInventoryGateway(InventoryGateway):
    """Configurable fake inventory gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.fail_adjustments: bool = False
        self.failure_reason: str = "Inventory service unavailable"
        self.calls: list[dict] = []
        self._stock_item_by_variant: dict[str, str] = {}
        self._levels: dict[tuple[str, str], int] = {}

    def configure(
        self,
        should_succeed: bool,
        failure_reason: str = "Inventory service unavailable",
        fail_adjustments: bool = False,
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.fail_adjustments = fail_adjustments

    # ------------------------------------------------------------------
    # Ledger setup
    # ------------------------------------------------------------------

    def register_variant(self, variant_id: str, stock_item_id: str) -> None:
        self._stock_item_by_variant[str(variant_id)] = str(stock_item_id)

    def set_level(self, stock_item_id: str, location_id: str, available: int) -> None:
        self._levels[(str(stock_item_id), str(location_id))] = available

    def level(self, stock_item_id: str, location_id: str) -> int | None:
        return self._levels.get((str(stock_item_id), str(location_id)))

    def calls_to(self, method: str) -> list[dict]:
        return [c for c in self.calls if c["method"] == method]

    def _check(self) -> None:
        if not self.should_succeed:
            raise GatewayError(self.failure_reason)

    # ------------------------------------------------------------------
    # InventoryGateway
    # ------------------------------------------------------------------

    def resolve_variant(self, stock_item_id: str) -> str | None:
        self.calls.append({"method": "resolve_variant", "stock_item_id": str(stock_item_id), "batch_size": 1})
        self._check()
        for variant_id, item_id in self._stock_item_by_variant.items():
            if item_id == str(stock_item_id):
                return variant_id
        return None

    def resolve_stock_items(self, variant_ids: list[str]) -> dict[str, str]:
        self.calls.append(
            {"method": "resolve_stock_items", "variant_ids": list(variant_ids), "batch_size": len(variant_ids)}
        )
        self._check()
        return {
            str(v): self._stock_item_by_variant[str(v)] for v in variant_ids if str(v) in self._stock_item_by_variant
        }

    def read_levels(self, stock_item_ids: list[str], location_id: str) -> dict[str, int]:
        self.calls.append(
            {
                "method": "read_levels",
                "stock_item_ids": list(stock_item_ids),
                "location_id": str(location_id),
                "batch_size": len(stock_item_ids),
            }
        )
        self._check()
        return {
            str(item): self._levels[(str(item), str(location_id))]
            for item in stock_item_ids
            if (str(item), str(location_id)) in self._levels
        }

    def adjust_levels(self, changes: list[StockAdjustment], reason: str) -> AdjustmentReport:
        self.calls.append(
            {"method": "adjust_levels", "changes": list(changes), "reason": reason, "batch_size": len(changes)}
        )
        self._check()
        if self.fail_adjustments:
            return AdjustmentReport(applied=0, user_errors=[self.failure_reason])

        for change in changes:
            key = (str(change.stock_item_id), str(change.location_id))
            self._levels[key] = self._levels.get(key, 0) + change.delta
        return AdjustmentReport(applied=len(changes))
