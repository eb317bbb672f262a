"""Column layouts for RF2 snapshot rows and typed decoders over them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .constants import ACTIVE
from .errors import MalformedRowError


class ComponentFields:
    """Columns shared by every RF2 component file."""

    ID = 0
    EFFECTIVE_TIME = 1
    ACTIVE = 2
    MODULE_ID = 3


class ConceptFields(ComponentFields):
    DEFINITION_STATUS_ID = 4
    COUNT = 5


class DescriptionFields(ComponentFields):
    CONCEPT_ID = 4
    LANGUAGE_CODE = 5
    TYPE_ID = 6
    TERM = 7
    CASE_SIGNIFICANCE_ID = 8
    COUNT = 9


class RelationshipFields(ComponentFields):
    SOURCE_ID = 4
    DESTINATION_ID = 5
    RELATIONSHIP_GROUP = 6
    TYPE_ID = 7
    CHARACTERISTIC_TYPE_ID = 8
    MODIFIER_ID = 9
    COUNT = 10


class RefsetFields(ComponentFields):
    REFSET_ID = 4
    REFERENCED_COMPONENT_ID = 5
    # Refset-specific columns may follow; only the shared prefix is decoded.
    COUNT = 6


def _require(values: Sequence[str], kind: str, count: int) -> None:
    if len(values) < count:
        raise MalformedRowError(kind, count, len(values))


@dataclass(slots=True, frozen=True)
class ConceptRow:
    id: str
    effective_time: str
    active: str
    module_id: str
    definition_status_id: str

    @property
    def is_active(self) -> bool:
        return self.active == ACTIVE

    @classmethod
    def from_values(cls, values: Sequence[str]) -> "ConceptRow":
        _require(values, "concept", ConceptFields.COUNT)
        return cls(
            id=values[ConceptFields.ID],
            effective_time=values[ConceptFields.EFFECTIVE_TIME],
            active=values[ConceptFields.ACTIVE],
            module_id=values[ConceptFields.MODULE_ID],
            definition_status_id=values[ConceptFields.DEFINITION_STATUS_ID],
        )


@dataclass(slots=True, frozen=True)
class DescriptionRow:
    id: str
    effective_time: str
    active: str
    module_id: str
    concept_id: str
    language_code: str
    type_id: str
    term: str
    case_significance_id: str

    @property
    def is_active(self) -> bool:
        return self.active == ACTIVE

    @classmethod
    def from_values(cls, values: Sequence[str]) -> "DescriptionRow":
        _require(values, "description", DescriptionFields.COUNT)
        return cls(
            id=values[DescriptionFields.ID],
            effective_time=values[DescriptionFields.EFFECTIVE_TIME],
            active=values[DescriptionFields.ACTIVE],
            module_id=values[DescriptionFields.MODULE_ID],
            concept_id=values[DescriptionFields.CONCEPT_ID],
            language_code=values[DescriptionFields.LANGUAGE_CODE],
            type_id=values[DescriptionFields.TYPE_ID],
            term=values[DescriptionFields.TERM],
            case_significance_id=values[DescriptionFields.CASE_SIGNIFICANCE_ID],
        )


@dataclass(slots=True, frozen=True)
class RelationshipRow:
    id: str
    effective_time: str
    active: str
    module_id: str
    source_id: str
    destination_id: str
    relationship_group: str
    type_id: str
    characteristic_type_id: str
    modifier_id: str

    @property
    def is_active(self) -> bool:
        return self.active == ACTIVE

    @classmethod
    def from_values(cls, values: Sequence[str]) -> "RelationshipRow":
        _require(values, "relationship", RelationshipFields.COUNT)
        return cls(
            id=values[RelationshipFields.ID],
            effective_time=values[RelationshipFields.EFFECTIVE_TIME],
            active=values[RelationshipFields.ACTIVE],
            module_id=values[RelationshipFields.MODULE_ID],
            source_id=values[RelationshipFields.SOURCE_ID],
            destination_id=values[RelationshipFields.DESTINATION_ID],
            relationship_group=values[RelationshipFields.RELATIONSHIP_GROUP],
            type_id=values[RelationshipFields.TYPE_ID],
            characteristic_type_id=values[RelationshipFields.CHARACTERISTIC_TYPE_ID],
            modifier_id=values[RelationshipFields.MODIFIER_ID],
        )


@dataclass(slots=True, frozen=True)
class RefsetMemberRow:
    id: str
    effective_time: str
    active: str
    module_id: str
    refset_id: str
    referenced_component_id: str

    @property
    def is_active(self) -> bool:
        return self.active == ACTIVE

    @classmethod
    def from_values(cls, values: Sequence[str]) -> "RefsetMemberRow":
        _require(values, "reference set member", RefsetFields.COUNT)
        return cls(
            id=values[RefsetFields.ID],
            effective_time=values[RefsetFields.EFFECTIVE_TIME],
            active=values[RefsetFields.ACTIVE],
            module_id=values[RefsetFields.MODULE_ID],
            refset_id=values[RefsetFields.REFSET_ID],
            referenced_component_id=values[RefsetFields.REFERENCED_COMPONENT_ID],
        )


__all__ = [
    "ComponentFields",
    "ConceptFields",
    "DescriptionFields",
    "RelationshipFields",
    "RefsetFields",
    "ConceptRow",
    "DescriptionRow",
    "RelationshipRow",
    "RefsetMemberRow",
]
