"""Inbound inventory deliveries: decoding, verification and de-duplication.

Inventory changes arrive two ways:

- **direct webhook**: the platform POSTs the JSON payload, with the shop and
  delivery id in ``X-Shopify-*`` headers and an HMAC of the raw body.
- **queued push**: a relay republishes the webhook to a message queue that
  pushes ``{"message": {"data": <base64 JSON>, "messageId": ..., "attributes":
  {"shop": ...}}, "subscription": ...}``.

Both carry at-least-once semantics. A delivery id is marked as seen with a
24h dedup lock before processing; a repeat within that window is
acknowledged without reprocessing. When processing fails the mark is
removed again so the transport's redelivery is processed for real.
"""

import base64
import binascii
import hashlib
import hmac
import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum

import structlog
from protean.utils.globals import current_domain

from bundling.sync.locking import DELIVERY_DEDUP_LOCK_TTL, SyncLockManager, delivery_lock_id
from bundling.sync.processing import ProcessInventoryLevelUpdate
from bundling.sync.synchronizer import InventoryLevelUpdate, SyncResult
from bundling.utils.logging import add_context, clear_context

logger = structlog.get_logger(__name__)

SHOP_HEADER = "X-Shopify-Shop-Domain"
WEBHOOK_ID_HEADER = "X-Shopify-Webhook-Id"
HMAC_HEADER = "X-Shopify-Hmac-Sha256"

DEDUP_OWNER_REF = "delivery-dedup"


class MalformedDeliveryError(ValueError):
    """The delivery could not be decoded into an inventory level update."""


class InvalidSignatureError(Exception):
    """The webhook's HMAC did not match the shared secret."""


class DeliverySource(Enum):
    WEBHOOK = "webhook"
    QUEUE = "queue"


class IngressOutcome(Enum):
    ACKNOWLEDGED = "acknowledged"
    DUPLICATE = "duplicate"
    UNTRACKED = "untracked"
    RETRY = "retry"

    @property
    def status_code(self) -> int:
        return 500 if self is IngressOutcome.RETRY else 200


@dataclass(frozen=True)
class Delivery:
    """One decoded inbound message."""

    source: DeliverySource
    delivery_id: str | None
    update: InventoryLevelUpdate


def verify_hmac(body: bytes, signature: str | None, secret: str) -> bool:
    """Check a base64 HMAC-SHA256 of the raw body."""
    if not signature:
        return False
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    expected = base64.b64encode(digest).decode("ascii")
    return hmac.compare_digest(expected, signature)


def _header(headers: Mapping, name: str) -> str | None:
    value = headers.get(name)
    if value is None:
        value = headers.get(name.lower())
    return value


def _parse_json(raw, what: str):
    try:
        return json.loads(raw)
    except (TypeError, ValueError, UnicodeDecodeError):
        raise MalformedDeliveryError(f"Invalid JSON in {what}") from None


def _to_update(payload, shop_id: str | None) -> InventoryLevelUpdate:
    if not isinstance(payload, dict):
        raise MalformedDeliveryError("Inventory payload must be an object")
    if not shop_id:
        raise MalformedDeliveryError("Missing shop")

    missing = [k for k in ("inventory_item_id", "location_id") if payload.get(k) is None]
    if "available" not in payload:
        missing.append("available")
    if missing:
        raise MalformedDeliveryError(f"Missing fields: {', '.join(missing)}")

    # null for items whose inventory is not tracked
    available = payload["available"]
    if available is not None and (isinstance(available, bool) or not isinstance(available, int)):
        raise MalformedDeliveryError("available must be an integer")

    return InventoryLevelUpdate(
        stock_item_id=str(payload["inventory_item_id"]),
        location_id=str(payload["location_id"]),
        available=available,
        shop_id=str(shop_id),
    )


def decode_webhook(body: bytes, headers: Mapping, secret: str | None = None) -> Delivery:
    """Decode a direct webhook POST.

    Raises:
        InvalidSignatureError: a secret is configured and the HMAC does not match.
        MalformedDeliveryError: the body or headers are unusable.
    """
    if secret and not verify_hmac(body, _header(headers, HMAC_HEADER), secret):
        raise InvalidSignatureError("Webhook HMAC verification failed")

    payload = _parse_json(body, "webhook body")
    return Delivery(
        source=DeliverySource.WEBHOOK,
        delivery_id=_header(headers, WEBHOOK_ID_HEADER),
        update=_to_update(payload, _header(headers, SHOP_HEADER)),
    )


def decode_queue_push(body) -> Delivery:
    """Decode a queued push envelope (raw bytes or an already-parsed dict)."""
    envelope = body if isinstance(body, dict) else _parse_json(body, "push envelope")
    if not isinstance(envelope, dict):
        raise MalformedDeliveryError("Push envelope must be an object")

    message = envelope.get("message")
    if not isinstance(message, dict) or not message.get("data"):
        raise MalformedDeliveryError("Missing message data")

    try:
        decoded = base64.b64decode(message["data"], validate=True)
    except (binascii.Error, ValueError, TypeError):
        raise MalformedDeliveryError("Invalid message data") from None
    payload = _parse_json(decoded, "message data")

    attributes = message.get("attributes") or {}
    message_id = message.get("messageId") or message.get("message_id")
    if not message_id:
        raise MalformedDeliveryError("Missing messageId")

    return Delivery(
        source=DeliverySource.QUEUE,
        delivery_id=str(message_id),
        update=_to_update(payload, attributes.get("shop")),
    )


def dispatch_update(update: InventoryLevelUpdate) -> SyncResult:
    """Run an update through the domain's command pipeline."""
    outcome = current_domain.process(
        ProcessInventoryLevelUpdate(
            shop_id=update.shop_id,
            stock_item_id=update.stock_item_id,
            location_id=update.location_id,
            available=update.available,
        ),
        asynchronous=False,
    )
    return SyncResult(**outcome)


class InventoryUpdateIngress:
    """At-most-once processing on top of at-least-once delivery."""

    def __init__(
        self,
        lock_manager: SyncLockManager | None = None,
        dispatch: Callable[[InventoryLevelUpdate], SyncResult] | None = None,
    ) -> None:
        self.lock_manager = lock_manager or SyncLockManager()
        self.dispatch = dispatch or dispatch_update

    def deliver(self, delivery: Delivery) -> IngressOutcome:
        update = delivery.update
        add_context(shop_id=update.shop_id, delivery_id=delivery.delivery_id, source=delivery.source.value)
        try:
            return self._deliver(delivery)
        finally:
            clear_context()

    def _deliver(self, delivery: Delivery) -> IngressOutcome:
        update = delivery.update
        if update.available is None:
            logger.info("Inventory item is not tracked, acknowledging", stock_item_id=update.stock_item_id)
            return IngressOutcome.UNTRACKED

        lock_id = delivery_lock_id(delivery.delivery_id) if delivery.delivery_id else None

        if lock_id and not self.lock_manager.acquire(lock_id, DEDUP_OWNER_REF, DELIVERY_DEDUP_LOCK_TTL):
            logger.info("Duplicate delivery, acknowledging")
            return IngressOutcome.DUPLICATE

        logger.info(
            "Processing inventory update",
            stock_item_id=update.stock_item_id,
            location_id=update.location_id,
            available=update.available,
        )

        try:
            result = self.dispatch(update)
        except Exception:
            logger.exception("Failed to process inventory update")
            self._forget(lock_id)
            return IngressOutcome.RETRY

        if result.error:
            logger.error("Inventory update failed, requesting redelivery", error=result.error)
            self._forget(lock_id)
            return IngressOutcome.RETRY

        if result.skipped:
            logger.info("Inventory update skipped", reason=result.skipped)
        else:
            logger.info(
                "Inventory update applied",
                bundles_affected=result.bundles_affected,
                adjustments_made=result.adjustments_made,
            )
        return IngressOutcome.ACKNOWLEDGED

    def _forget(self, lock_id: str | None) -> None:
        if lock_id:
            self.lock_manager.release(lock_id)
