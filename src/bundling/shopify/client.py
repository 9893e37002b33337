"""Shopify Admin GraphQL client.

A thin ``requests`` session wrapper: one POST per query, exponential backoff
on throttling (429), server errors (5xx) and connection failures, and
top-level GraphQL ``errors`` surfaced as ``ShopifyAPIError``.
"""

import os
import time

import requests
import structlog

from bundling.gateway.port import GatewayError

logger = structlog.get_logger(__name__)

DEFAULT_API_VERSION = "2024-10"
MAX_ATTEMPTS = 3
RETRY_BASE_DELAY = 1.0  # seconds
RETRY_MAX_DELAY = 30.0
RETRYABLE_STATUS_CODES = (429, 500, 502, 503, 504)

_GID_PREFIX = "gid://shopify/"


class ShopifyAPIError(GatewayError):
    """The Admin API rejected a request or could not be reached."""

    def __init__(self, message: str, status_code: int = 0, errors: list | None = None):
        self.status_code = status_code
        self.errors = errors or []
        super().__init__(message)


def to_gid(resource: str, value) -> str:
    """Normalize a numeric id (or an existing gid) to ``gid://shopify/<resource>/<id>``."""
    value = str(value)
    if value.startswith(_GID_PREFIX):
        return value
    return f"{_GID_PREFIX}{resource}/{value}"


def canonical_variant_id(value) -> str:
    """The form variant ids are stored and compared in.

    Bare numeric ids become ProductVariant gids, so ids typed by operators
    match the gids the Admin API returns. Anything else is kept as given.
    """
    value = str(value).strip()
    return to_gid("ProductVariant", value) if value.isdigit() else value


class ShopifyAdminClient:
    """Executes GraphQL documents against one shop's Admin API."""

    def __init__(
        self,
        shop_domain: str,
        access_token: str,
        api_version: str = DEFAULT_API_VERSION,
        session: requests.Session | None = None,
        timeout: float = 30.0,
        max_attempts: int = MAX_ATTEMPTS,
        base_delay: float = RETRY_BASE_DELAY,
        sleep=time.sleep,
    ) -> None:
        self.shop_domain = shop_domain
        self.api_version = api_version
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self._sleep = sleep
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "X-Shopify-Access-Token": access_token,
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
        )

    @property
    def endpoint(self) -> str:
        return f"https://{self.shop_domain}/admin/api/{self.api_version}/graphql.json"

    def _backoff(self, attempt: int, retry_after: str | None = None) -> float:
        if retry_after:
            try:
                return min(float(retry_after), RETRY_MAX_DELAY)
            except ValueError:
                pass
        return min(self.base_delay * (2 ** (attempt - 1)), RETRY_MAX_DELAY)

    def execute(self, query: str, variables: dict | None = None) -> dict:
        """Run a GraphQL document and return its ``data`` object.

        Raises:
            ShopifyAPIError: non-retryable HTTP failure, exhausted retries,
                or GraphQL-level errors in the response.
        """
        payload = {"query": query, "variables": variables or {}}
        last_error: ShopifyAPIError | None = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                response = self._session.post(self.endpoint, json=payload, timeout=self.timeout)
            except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as exc:
                last_error = ShopifyAPIError(f"Shopify request failed: {exc}")
                delay = self._backoff(attempt)
            else:
                if response.status_code in RETRYABLE_STATUS_CODES:
                    last_error = ShopifyAPIError(
                        f"Shopify responded with HTTP {response.status_code}",
                        status_code=response.status_code,
                    )
                    delay = self._backoff(attempt, response.headers.get("Retry-After"))
                elif response.status_code >= 400:
                    raise ShopifyAPIError(
                        f"Shopify responded with HTTP {response.status_code}: {response.text[:200]}",
                        status_code=response.status_code,
                    )
                else:
                    return self._unwrap(response)

            if attempt < self.max_attempts:
                logger.warning(
                    "Retrying Shopify request",
                    shop_domain=self.shop_domain,
                    attempt=attempt,
                    delay=delay,
                    error=str(last_error),
                )
                self._sleep(delay)

        raise last_error

    def _unwrap(self, response) -> dict:
        try:
            body = response.json()
        except ValueError:
            raise ShopifyAPIError("Shopify returned a non-JSON response", status_code=response.status_code) from None

        errors = body.get("errors")
        if errors:
            messages = "; ".join(str(e.get("message", e)) if isinstance(e, dict) else str(e) for e in errors)
            raise ShopifyAPIError(f"GraphQL errors: {messages}", status_code=response.status_code, errors=errors)
        return body.get("data") or {}

    def close(self) -> None:
        self._session.close()


def build_client_from_env() -> ShopifyAdminClient:
    """Client for the shop named by ``SHOPIFY_SHOP_DOMAIN``."""
    shop_domain = os.environ.get("SHOPIFY_SHOP_DOMAIN")
    access_token = os.environ.get("SHOPIFY_ACCESS_TOKEN")
    if not shop_domain or not access_token:
        raise ValueError("SHOPIFY_SHOP_DOMAIN and SHOPIFY_ACCESS_TOKEN must be set")
    return ShopifyAdminClient(
        shop_domain=shop_domain,
        access_token=access_token,
        api_version=os.environ.get("SHOPIFY_API_VERSION", DEFAULT_API_VERSION),
    )
