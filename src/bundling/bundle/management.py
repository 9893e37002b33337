"""Bundle management — commands and handler."""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Identifier, String, Text
from protean.utils.globals import current_domain

from bundling.bundle.bundle import Bundle
from bundling.domain import bundling

logger = structlog.get_logger(__name__)


@bundling.command(part_of="Bundle")
class DefineBundle:
    """Define a bundle for a parent variant."""

    shop_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    parent_variant_id = Identifier(required=True)
    components = Text(required=True)  # JSON list of {variant_id, quantity}
    expand_on_pick = Boolean(default=False)


@bundling.command(part_of="Bundle")
class UpdateBundle:
    """Update a bundle. A component list replaces the existing one."""

    bundle_id = Identifier(required=True)
    name = String(max_length=255)
    components = Text()
    expand_on_pick = Boolean()


@bundling.command(part_of="Bundle")
class RemoveBundle:
    """Delete a bundle and its components."""

    bundle_id = Identifier(required=True)


def _parse_components(raw):
    if raw is None:
        return None
    try:
        components = json.loads(raw) if isinstance(raw, str) else raw
    except json.JSONDecodeError:
        raise ValidationError({"components": ["Components must be valid JSON"]}) from None
    if not isinstance(components, list):
        raise ValidationError({"components": ["Components must be a list"]})
    return components


@bundling.command_handler(part_of=Bundle)
class BundleManagementHandler:
    @handle(DefineBundle)
    def define_bundle(self, command):
        repo = current_domain.repository_for(Bundle)
        if repo.find_by_parent(command.shop_id, command.parent_variant_id) is not None:
            raise ValidationError({"parent_variant_id": ["A bundle already exists for this parent variant"]})

        bundle = Bundle.create(
            shop_id=command.shop_id,
            name=command.name,
            parent_variant_id=command.parent_variant_id,
            components=_parse_components(command.components),
            expand_on_pick=bool(command.expand_on_pick),
        )
        repo.add(bundle)
        logger.info(
            "Bundle defined",
            bundle_id=str(bundle.id),
            shop_id=str(command.shop_id),
            parent_variant_id=str(command.parent_variant_id),
            component_count=len(bundle.components),
        )
        return str(bundle.id)

    @handle(UpdateBundle)
    def update_bundle(self, command):
        repo = current_domain.repository_for(Bundle)
        bundle = repo.get(command.bundle_id)
        bundle.update(
            name=command.name,
            components=_parse_components(command.components),
            expand_on_pick=command.expand_on_pick,
        )
        repo.add(bundle)

    @handle(RemoveBundle)
    def remove_bundle(self, command):
        repo = current_domain.repository_for(Bundle)
        bundle = repo.get(command.bundle_id)
        repo._dao.delete(bundle)
        logger.info("Bundle removed", bundle_id=str(command.bundle_id))
