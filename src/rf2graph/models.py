"""Concept, relationship and description records built from release rows."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Set

from .constants import ACTIVE

# Partition identifiers occupy the two digits before the check digit; a zero in
# the second of them marks a concept (00 core, 10 extension namespace).
_CONCEPT_PARTITION_DIGIT = "0"


def is_concept_id(sctid: str) -> bool:
    """Return True when ``sctid`` is formatted as a concept identifier."""

    if not sctid or len(sctid) < 6 or not sctid.isdigit():
        return False
    return sctid[-2] == _CONCEPT_PARTITION_DIGIT


@dataclass(slots=True)
class Concept:
    """A concept accumulated across all phases of an import."""

    id: str
    effective_time: str
    active: bool
    module_id: str
    definition_status_id: str
    parents: Set[str] = field(default_factory=set)
    fsn: Optional[str] = None
    attributes: Dict[str, Set[str]] = field(default_factory=dict)
    member_of_refsets: Set[str] = field(default_factory=set)

    @classmethod
    def from_fields(
        cls,
        concept_id: str,
        effective_time: str,
        active: str,
        module_id: str,
        definition_status_id: str,
    ) -> "Concept":
        return cls(
            id=concept_id,
            effective_time=effective_time,
            active=active == ACTIVE,
            module_id=module_id,
            definition_status_id=definition_status_id,
        )

    def add_attribute(self, type_id: str, value: str) -> None:
        self.attributes.setdefault(type_id, set()).add(value)


@dataclass(slots=True, frozen=True)
class Relationship:
    """Full relationship record, kept only when the profile asks for it."""

    id: str
    effective_time: str
    active: bool
    module_id: str
    source_id: str
    destination_id: str
    relationship_group: str
    type_id: str
    characteristic_type_id: str
    modifier_id: str


@dataclass(slots=True, frozen=True)
class Description:
    """Full description record, kept only when the profile asks for it."""

    id: str
    active: bool
    term: str
    concept_id: str


__all__ = ["Concept", "Description", "Relationship", "is_concept_id"]
