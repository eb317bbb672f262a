"""Configuration for RF2 release imports.

Settings are read from environment variables prefixed with ``RF2GRAPH_``. The
loading profile is nested under ``RF2GRAPH_PROFILE__``; for example
``RF2GRAPH_PROFILE__INACTIVE_CONCEPTS=true`` retains inactive concepts and
``RF2GRAPH_PROFILE__REFSET_IDS='["*"]'`` tracks every reference set.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, PositiveInt, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import ALL_REFSETS, INTERNATIONAL_MARKER


class LoadingProfile(BaseModel):
    """Immutable description of which optional release content to retain."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    inactive_concepts: bool = Field(
        default=False,
        description="Retain concepts whose active flag is 0.",
    )
    inactive_descriptions: bool = Field(
        default=False,
        description="Retain inactive descriptions.",
    )
    inactive_relationships: bool = Field(
        default=False,
        description="Retain inactive relationships.",
    )
    inactive_refset_members: bool = Field(
        default=False,
        description="Retain inactive reference set members.",
    )
    stated_relationships: bool = Field(
        default=False,
        description="Retain relationships with the stated characteristic type as well as inferred ones.",
    )
    full_relationship_objects: bool = Field(
        default=False,
        description="Materialise a relationship record for each accepted relationship row.",
    )
    full_description_objects: bool = Field(
        default=False,
        description="Materialise a description record for each accepted description row.",
    )
    attribute_map_on_concept: bool = Field(
        default=False,
        description="Fold relationship type/destination pairs onto the source concept.",
    )
    refset_ids: FrozenSet[str] = Field(
        default_factory=frozenset,
        description="Reference set ids to track. '*' (or 'all') tracks every reference set.",
    )

    @field_validator("refset_ids", mode="before")
    @classmethod
    def _normalise_refset_ids(cls, value: object) -> object:
        if value is None:
            return frozenset()
        if isinstance(value, str):
            value = value.split(",")
        if isinstance(value, (list, tuple, set, frozenset)):
            cleaned = {str(item).strip() for item in value if str(item).strip()}
            if cleaned & {ALL_REFSETS, "all", "ALL"}:
                return frozenset({ALL_REFSETS})
            return frozenset(cleaned)
        return value

    @property
    def all_refsets(self) -> bool:
        return ALL_REFSETS in self.refset_ids

    @property
    def tracks_refsets(self) -> bool:
        return bool(self.refset_ids)

    def is_refset(self, refset_id: str) -> bool:
        return refset_id in self.refset_ids

    # Presets

    @classmethod
    def light(cls) -> "LoadingProfile":
        """Active inferred content projected onto concepts only."""

        return cls()

    @classmethod
    def complete(cls) -> "LoadingProfile":
        """Full relationship and description objects plus every reference set."""

        return cls(
            stated_relationships=True,
            full_relationship_objects=True,
            full_description_objects=True,
            attribute_map_on_concept=True,
            refset_ids=frozenset({ALL_REFSETS}),
        )

    @classmethod
    def full(cls) -> "LoadingProfile":
        """Everything in :meth:`complete` including inactive components."""

        return cls.complete().with_inactive_components()

    # Copy-on-write builders

    def with_refsets(self, *refset_ids: str) -> "LoadingProfile":
        if self.all_refsets:
            return self
        # Validate so the wildcard spellings collapse to ALL_REFSETS.
        return self.model_validate({**self.model_dump(), "refset_ids": self.refset_ids | set(refset_ids)})

    def with_all_refsets(self) -> "LoadingProfile":
        return self.model_copy(update={"refset_ids": frozenset({ALL_REFSETS})})

    def without_refsets(self) -> "LoadingProfile":
        return self.model_copy(update={"refset_ids": frozenset()})

    def with_inactive_components(self) -> "LoadingProfile":
        return self.model_copy(
            update={
                "inactive_concepts": True,
                "inactive_descriptions": True,
                "inactive_relationships": True,
                "inactive_refset_members": True,
            }
        )

    def with_stated_relationships(self) -> "LoadingProfile":
        return self.model_copy(update={"stated_relationships": True})

    def with_full_relationship_objects(self) -> "LoadingProfile":
        return self.model_copy(update={"full_relationship_objects": True})

    def with_full_description_objects(self) -> "LoadingProfile":
        return self.model_copy(update={"full_description_objects": True})


class ImportSettings(BaseSettings):
    """Settings governing how a release directory is discovered and loaded."""

    model_config = SettingsConfigDict(
        env_prefix="RF2GRAPH_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    release_root: Optional[Path] = Field(
        default=None,
        description="Directory containing an unpacked RF2 release (International and/or extension).",
    )
    max_workers: Optional[PositiveInt] = Field(
        default=None,
        description="Upper bound on concurrent file-loading tasks. None uses the executor default.",
    )
    encoding: str = Field(
        default="utf-8",
        description="Text encoding of the release files.",
    )
    international_marker: str = Field(
        default=INTERNATIONAL_MARKER,
        description="Filename token identifying International Edition files.",
    )
    require_relationship_snapshot: bool = Field(
        default=False,
        description="Fail classification when the International relationship snapshot is absent.",
    )
    batch_poll_seconds: PositiveFloat = Field(
        default=0.5,
        description="How often the coordinator checks for cancellation while a batch runs.",
    )
    profile: LoadingProfile = Field(
        default_factory=LoadingProfile,
        description="Loading profile applied when the caller does not supply one.",
    )

    @field_validator("international_marker")
    @classmethod
    def _validate_marker(cls, value: str) -> str:
        if not value:
            raise ValueError("international_marker must be a non-empty filename token")
        return value

    def resolve_release_root(self) -> Optional[Path]:
        """Return the configured release root as an absolute path when set."""

        if self.release_root is None:
            return None
        return self.release_root.expanduser().resolve()


@lru_cache(maxsize=1)
def get_import_settings() -> ImportSettings:
    """Return cached import settings."""

    return ImportSettings()


def get_loading_profile() -> LoadingProfile:
    """Return the loading profile configured through the environment."""

    return get_import_settings().profile


__all__ = [
    "ImportSettings",
    "LoadingProfile",
    "get_import_settings",
    "get_loading_profile",
]
