"""Component sink contract and the default in-memory concept store."""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Dict, Iterable, Mapping, Protocol, Set

from .constants import ACTIVE
from .models import Concept, Description, Relationship

logger = logging.getLogger(__name__)


class ComponentFactory(Protocol):
    """Interface the import pipeline writes accepted rows through.

    Implementations must tolerate concurrent calls from several loading tasks,
    including appends to the same concept from different threads.
    """

    def create_concept(
        self,
        concept_id: str,
        effective_time: str,
        active: str,
        module_id: str,
        definition_status_id: str,
    ) -> None:
        ...

    def add_concept_parent(self, source_id: str, destination_id: str) -> None:
        ...

    def add_concept_attribute(self, source_id: str, type_id: str, value: str) -> None:
        ...

    def add_concept_fsn(self, concept_id: str, term: str) -> None:
        ...

    def add_relationship(
        self,
        relationship_id: str,
        effective_time: str,
        active: str,
        module_id: str,
        source_id: str,
        destination_id: str,
        relationship_group: str,
        type_id: str,
        characteristic_type_id: str,
        modifier_id: str,
    ) -> None:
        ...

    def add_description(self, description_id: str, active: str, term: str, concept_id: str) -> None:
        ...

    def add_concept_referenced_in_refset(self, refset_id: str, concept_id: str) -> None:
        ...

    @property
    def concepts(self) -> Mapping[str, Concept]:
        ...


class ComponentStore:
    """Thread-safe store backing a single import run.

    Writes for concepts that were never created do not raise. Parent edges from
    unknown sources are kept in :attr:`dangling_parents`; labels, attributes
    and refset membership for unknown concepts are dropped.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._concepts: Dict[str, Concept] = {}
        self._relationships: Dict[str, Relationship] = {}
        self._descriptions: Dict[str, Description] = {}
        self._refset_members: Dict[str, Set[str]] = defaultdict(set)
        self._dangling_parents: Dict[str, Set[str]] = defaultdict(set)
        self._dropped = 0

    # ComponentFactory

    def create_concept(
        self,
        concept_id: str,
        effective_time: str,
        active: str,
        module_id: str,
        definition_status_id: str,
    ) -> None:
        with self._lock:
            existing = self._concepts.get(concept_id)
            if existing is None:
                self._concepts[concept_id] = Concept.from_fields(
                    concept_id, effective_time, active, module_id, definition_status_id
                )
                return
            # A later file (usually an extension) restates the concept.
            existing.effective_time = effective_time
            existing.active = active == ACTIVE
            existing.module_id = module_id
            existing.definition_status_id = definition_status_id

    def add_concept_parent(self, source_id: str, destination_id: str) -> None:
        with self._lock:
            concept = self._concepts.get(source_id)
            if concept is None:
                self._dangling_parents[source_id].add(destination_id)
                return
            concept.parents.add(destination_id)

    def add_concept_attribute(self, source_id: str, type_id: str, value: str) -> None:
        with self._lock:
            concept = self._concepts.get(source_id)
            if concept is None:
                self._drop("attribute", source_id)
                return
            concept.add_attribute(type_id, value)

    def add_concept_fsn(self, concept_id: str, term: str) -> None:
        with self._lock:
            concept = self._concepts.get(concept_id)
            if concept is None:
                self._drop("fsn", concept_id)
                return
            concept.fsn = term

    def add_relationship(
        self,
        relationship_id: str,
        effective_time: str,
        active: str,
        module_id: str,
        source_id: str,
        destination_id: str,
        relationship_group: str,
        type_id: str,
        characteristic_type_id: str,
        modifier_id: str,
    ) -> None:
        relationship = Relationship(
            id=relationship_id,
            effective_time=effective_time,
            active=active == ACTIVE,
            module_id=module_id,
            source_id=source_id,
            destination_id=destination_id,
            relationship_group=relationship_group,
            type_id=type_id,
            characteristic_type_id=characteristic_type_id,
            modifier_id=modifier_id,
        )
        with self._lock:
            self._relationships[relationship_id] = relationship

    def add_description(self, description_id: str, active: str, term: str, concept_id: str) -> None:
        description = Description(
            id=description_id,
            active=active == ACTIVE,
            term=term,
            concept_id=concept_id,
        )
        with self._lock:
            self._descriptions[description_id] = description

    def add_concept_referenced_in_refset(self, refset_id: str, concept_id: str) -> None:
        with self._lock:
            concept = self._concepts.get(concept_id)
            if concept is None:
                self._drop("refset member", concept_id)
                return
            concept.member_of_refsets.add(refset_id)
            self._refset_members[refset_id].add(concept_id)

    # Read side

    @property
    def concepts(self) -> Dict[str, Concept]:
        return self._concepts

    @property
    def relationships(self) -> Dict[str, Relationship]:
        return self._relationships

    @property
    def descriptions(self) -> Dict[str, Description]:
        return self._descriptions

    @property
    def dangling_parents(self) -> Dict[str, Set[str]]:
        with self._lock:
            return {source: set(targets) for source, targets in self._dangling_parents.items()}

    @property
    def dropped_count(self) -> int:
        return self._dropped

    def refset_members(self, refset_id: str) -> Set[str]:
        with self._lock:
            return set(self._refset_members.get(refset_id, ()))

    def ancestor_ids(self, concept_id: str) -> Set[str]:
        """Return every transitive parent of ``concept_id``.

        Cycles in the parent graph are tolerated; each id is visited once.
        """

        ancestors: Set[str] = set()
        with self._lock:
            pending = list(self._parents_of(concept_id))
            while pending:
                current = pending.pop()
                if current in ancestors:
                    continue
                ancestors.add(current)
                pending.extend(self._parents_of(current))
        ancestors.discard(concept_id)
        return ancestors

    def children_ids(self, concept_id: str) -> Set[str]:
        with self._lock:
            return {concept.id for concept in self._concepts.values() if concept_id in concept.parents}

    def _parents_of(self, concept_id: str) -> Iterable[str]:
        concept = self._concepts.get(concept_id)
        if concept is not None:
            return concept.parents
        return self._dangling_parents.get(concept_id, ())

    def _drop(self, what: str, concept_id: str) -> None:
        self._dropped += 1
        logger.debug("store | dropped %s for unknown concept | id=%s", what, concept_id)


__all__ = ["ComponentFactory", "ComponentStore"]
