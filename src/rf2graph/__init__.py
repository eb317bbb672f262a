"""Load SNOMED CT RF2 snapshot releases into an in-memory concept graph."""

from .config import ImportSettings, LoadingProfile, get_import_settings, get_loading_profile
from .discovery import FileRole, ReleaseFiles, find_release_files, is_extension, is_international
from .errors import (
    DuplicateReleaseFileError,
    ImportInterruptedError,
    MalformedRowError,
    MissingReleaseFileError,
    ReleaseDirectoryNotFoundError,
    Rf2ImportError,
)
from .importer import ReleaseImporter, TaskResult
from .models import Concept, Description, Relationship, is_concept_id
from .store import ComponentFactory, ComponentStore

__all__ = [
    "ComponentFactory",
    "ComponentStore",
    "Concept",
    "Description",
    "DuplicateReleaseFileError",
    "FileRole",
    "ImportInterruptedError",
    "ImportSettings",
    "LoadingProfile",
    "MalformedRowError",
    "MissingReleaseFileError",
    "Relationship",
    "ReleaseDirectoryNotFoundError",
    "ReleaseFiles",
    "ReleaseImporter",
    "Rf2ImportError",
    "TaskResult",
    "find_release_files",
    "get_import_settings",
    "get_loading_profile",
    "is_concept_id",
    "is_extension",
    "is_international",
]
