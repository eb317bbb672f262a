"""Exceptions raised by the RF2 import pipeline."""

from __future__ import annotations


class Rf2ImportError(Exception):
    """Base class for import failures surfaced to callers."""


class ReleaseDirectoryNotFoundError(Rf2ImportError, FileNotFoundError):
    """The release root does not exist or is not a directory."""


class MissingReleaseFileError(Rf2ImportError, FileNotFoundError):
    """A mandatory snapshot file is absent from the release."""

    def __init__(self, roles, root) -> None:
        self.roles = tuple(roles)
        self.root = root
        names = ", ".join(role.value for role in self.roles)
        super().__init__(f"Release under {root} is missing required file(s): {names}")


class DuplicateReleaseFileError(Rf2ImportError, ValueError):
    """Two files in one bundle matched the same singular role."""

    def __init__(self, role, first, second) -> None:
        self.role = role
        self.first = first
        self.second = second
        super().__init__(f"Duplicate file for role {role.value}: {first} and {second}")


class MalformedRowError(Rf2ImportError, ValueError):
    """A row carries fewer columns than its kind requires."""

    def __init__(self, kind: str, expected: int, actual: int) -> None:
        self.kind = kind
        self.expected = expected
        self.actual = actual
        super().__init__(f"Malformed {kind} row: expected at least {expected} columns, got {actual}")


class ImportInterruptedError(Rf2ImportError, RuntimeError):
    """The import was cancelled while waiting on a batch of loading tasks."""
