"""Locate and classify RF2 snapshot files inside a release directory."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from .constants import (
    CONCEPT_SNAPSHOT_PREFIX,
    DESCRIPTION_SNAPSHOT_PREFIX,
    INTERNATIONAL_MARKER,
    REFSET_PREFIX,
    RELATIONSHIP_SNAPSHOT_PREFIX,
    RELEASE_FILE_SUFFIX,
    TEXT_DEFINITION_SNAPSHOT_PREFIX,
)
from .errors import DuplicateReleaseFileError, MissingReleaseFileError, ReleaseDirectoryNotFoundError

logger = logging.getLogger(__name__)

FilenamePredicate = Callable[[str], bool]


class FileRole(str, Enum):
    CONCEPT = "concept"
    DESCRIPTION = "description"
    TEXT_DEFINITION = "text_definition"
    RELATIONSHIP = "relationship"
    REFSET_MEMBER = "refset_member"


# Evaluated in order; the first matching prefix decides the role.
FILE_RULES: Tuple[Tuple[str, FileRole], ...] = (
    (CONCEPT_SNAPSHOT_PREFIX, FileRole.CONCEPT),
    (DESCRIPTION_SNAPSHOT_PREFIX, FileRole.DESCRIPTION),
    (TEXT_DEFINITION_SNAPSHOT_PREFIX, FileRole.TEXT_DEFINITION),
    (RELATIONSHIP_SNAPSHOT_PREFIX, FileRole.RELATIONSHIP),
    (REFSET_PREFIX, FileRole.REFSET_MEMBER),
)

REQUIRED_ROLES: Tuple[FileRole, ...] = (FileRole.CONCEPT, FileRole.RELATIONSHIP)

_SINGULAR_SLOTS = {
    FileRole.CONCEPT: "concept_snapshot",
    FileRole.DESCRIPTION: "description_snapshot",
    FileRole.TEXT_DEFINITION: "text_definition_snapshot",
    FileRole.RELATIONSHIP: "relationship_snapshot",
}


def classify_filename(name: str) -> Optional[FileRole]:
    """Return the role a release file name plays, or None when unrecognised."""

    if not name.endswith(RELEASE_FILE_SUFFIX):
        return None
    for prefix, role in FILE_RULES:
        if name.startswith(prefix):
            return role
    return None


def is_international(name: str, marker: str = INTERNATIONAL_MARKER) -> bool:
    return marker in name


def is_extension(name: str, marker: str = INTERNATIONAL_MARKER) -> bool:
    return marker not in name


@dataclass
class ReleaseFiles:
    """Snapshot files found for one origin (International or extension)."""

    concept_snapshot: Optional[Path] = None
    description_snapshot: Optional[Path] = None
    text_definition_snapshot: Optional[Path] = None
    relationship_snapshot: Optional[Path] = None
    refset_snapshots: List[Path] = field(default_factory=list)

    def add(self, role: FileRole, path: Path) -> None:
        if role is FileRole.REFSET_MEMBER:
            self.refset_snapshots.append(path)
            return
        slot = _SINGULAR_SLOTS[role]
        current = getattr(self, slot)
        if current is not None:
            raise DuplicateReleaseFileError(role, current, path)
        setattr(self, slot, path)

    def get(self, role: FileRole) -> Optional[Path]:
        return getattr(self, _SINGULAR_SLOTS[role])

    def any_files_found(self) -> bool:
        return bool(
            self.concept_snapshot
            or self.description_snapshot
            or self.text_definition_snapshot
            or self.relationship_snapshot
            or self.refset_snapshots
        )

    def missing_roles(self, required: Sequence[FileRole] = REQUIRED_ROLES) -> List[FileRole]:
        return [role for role in required if self.get(role) is None]

    def assert_full_set(
        self,
        root: Optional[Path] = None,
        required: Sequence[FileRole] = REQUIRED_ROLES,
    ) -> None:
        missing = self.missing_roles(required)
        if missing:
            raise MissingReleaseFileError(missing, root)

    def describe(self) -> str:
        parts = [
            f"{role.value}={path.name}"
            for role in _SINGULAR_SLOTS
            if (path := self.get(role)) is not None
        ]
        parts.append(f"refsets={len(self.refset_snapshots)}")
        return ", ".join(parts)


def find_release_files(
    root: Path,
    predicate: FilenamePredicate,
    *,
    required_roles: Sequence[FileRole] = REQUIRED_ROLES,
) -> ReleaseFiles:
    """Walk ``root`` and collect the snapshot files accepted by ``predicate``.

    Directories are visited in sorted order and symlinks are followed, so an
    unchanged tree always produces the same bundle.
    """

    root = Path(root)
    if not root.is_dir():
        raise ReleaseDirectoryNotFoundError(f"Could not find release directory: {root}")

    release_files = ReleaseFiles()
    for directory, dirnames, filenames in os.walk(root, followlinks=True):
        dirnames.sort()
        for name in sorted(filenames):
            if not predicate(name):
                continue
            role = classify_filename(name)
            if role is None:
                continue
            path = Path(directory) / name
            if not path.is_file():
                continue
            release_files.add(role, path)

    release_files.assert_full_set(root, required_roles)
    logger.debug("discovery | %s | %s", root, release_files.describe())
    return release_files


__all__ = [
    "FILE_RULES",
    "FileRole",
    "ReleaseFiles",
    "REQUIRED_ROLES",
    "classify_filename",
    "find_release_files",
    "is_extension",
    "is_international",
]
