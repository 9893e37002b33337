"""Bundling bounded context — shared bundle inventory and warehouse pick lists.

Bundles let several sellable variants (Single, 4-Pack, 24-Pack, variety
packs) draw from one physical stock pool. Stock-change webhooks from the
commerce platform drive a reconciliation pass that keeps every bundle
parent's availability in line with its components. Pick lists aggregate
outstanding orders into a bin-sorted picking sheet.
"""

from protean.domain import Domain

from bundling.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

logger = get_logger(__name__)

# Domain Composition Root
bundling = Domain(name="bundling")
