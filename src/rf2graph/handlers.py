"""Per-row filtering and projection of RF2 rows into a component factory.

Each builder returns a callback for :func:`rf2graph.reader.read_rows`. The
callback decodes the raw fields into a typed row, applies the loading profile
and forwards accepted rows to the factory in the same streaming pass.
"""

from __future__ import annotations

from typing import Callable, Dict, List

from .config import LoadingProfile
from .constants import FSN, IS_A, STATED_RELATIONSHIP
from .discovery import FileRole
from .models import is_concept_id
from .reader import RowHandler
from .schema import ConceptRow, DescriptionRow, RefsetMemberRow, RelationshipRow
from .store import ComponentFactory


def concept_handler(factory: ComponentFactory, profile: LoadingProfile) -> RowHandler:
    def handle(values: List[str]) -> None:
        row = ConceptRow.from_values(values)
        if not (row.is_active or profile.inactive_concepts):
            return
        factory.create_concept(row.id, row.effective_time, row.active, row.module_id, row.definition_status_id)

    return handle


def relationship_handler(factory: ComponentFactory, profile: LoadingProfile) -> RowHandler:
    def handle(values: List[str]) -> None:
        row = RelationshipRow.from_values(values)
        if not (row.is_active or profile.inactive_relationships):
            return
        if row.characteristic_type_id == STATED_RELATIONSHIP and not profile.stated_relationships:
            return
        if profile.attribute_map_on_concept:
            factory.add_concept_attribute(row.source_id, row.type_id, row.destination_id)
        if row.type_id == IS_A:
            factory.add_concept_parent(row.source_id, row.destination_id)
        if profile.full_relationship_objects:
            factory.add_relationship(
                row.id,
                row.effective_time,
                row.active,
                row.module_id,
                row.source_id,
                row.destination_id,
                row.relationship_group,
                row.type_id,
                row.characteristic_type_id,
                row.modifier_id,
            )

    return handle


def description_handler(factory: ComponentFactory, profile: LoadingProfile) -> RowHandler:
    def handle(values: List[str]) -> None:
        row = DescriptionRow.from_values(values)
        if not (row.is_active or profile.inactive_descriptions):
            return
        if row.type_id == FSN:
            factory.add_concept_fsn(row.concept_id, row.term)
        if profile.full_description_objects:
            factory.add_description(row.id, row.active, row.term, row.concept_id)

    return handle


def refset_member_handler(factory: ComponentFactory, profile: LoadingProfile) -> RowHandler:
    def handle(values: List[str]) -> None:
        row = RefsetMemberRow.from_values(values)
        if not (row.is_active or profile.inactive_refset_members):
            return
        if not (profile.all_refsets or profile.is_refset(row.refset_id)):
            return
        # Members referencing descriptions or relationships are not projected.
        if is_concept_id(row.referenced_component_id):
            factory.add_concept_referenced_in_refset(row.refset_id, row.referenced_component_id)

    return handle


HANDLER_BUILDERS: Dict[FileRole, Callable[[ComponentFactory, LoadingProfile], RowHandler]] = {
    FileRole.CONCEPT: concept_handler,
    FileRole.RELATIONSHIP: relationship_handler,
    FileRole.DESCRIPTION: description_handler,
    FileRole.REFSET_MEMBER: refset_member_handler,
}


def build_handler(role: FileRole, factory: ComponentFactory, profile: LoadingProfile) -> RowHandler:
    try:
        builder = HANDLER_BUILDERS[role]
    except KeyError as exc:
        raise ValueError(f"No row handler for file role '{role.value}'") from exc
    return builder(factory, profile)


__all__ = [
    "HANDLER_BUILDERS",
    "build_handler",
    "concept_handler",
    "description_handler",
    "refset_member_handler",
    "relationship_handler",
]
