"""Coordinate loading an RF2 release into a component factory."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Union

import psutil

from .config import ImportSettings, LoadingProfile, get_import_settings
from .discovery import FileRole, ReleaseFiles, find_release_files, is_extension, is_international
from .errors import ImportInterruptedError, ReleaseDirectoryNotFoundError
from .handlers import build_handler
from .models import Concept
from .reader import read_rows
from .store import ComponentFactory, ComponentStore

COMPONENT_TYPES: Dict[FileRole, str] = {
    FileRole.CONCEPT: "concepts",
    FileRole.RELATIONSHIP: "relationships",
    FileRole.DESCRIPTION: "descriptions",
    FileRole.REFSET_MEMBER: "reference set members",
}


@dataclass(slots=True)
class LoadTask:
    """One release file scheduled for loading."""

    role: FileRole
    path: Path

    @property
    def component_type(self) -> str:
        return COMPONENT_TYPES[self.role]


@dataclass(slots=True)
class TaskResult:
    """Outcome of loading a single file."""

    component_type: str
    path: Path
    succeeded: bool
    rows: int = 0
    error: Optional[Exception] = None


class ReleaseImporter:
    """Load International and extension RF2 snapshots into a component factory.

    Concepts are loaded first on the calling thread. Relationship, description
    and reference set files are then loaded concurrently, one batch per origin,
    with the International batch completing before the extension batch starts.
    A failing file is logged and recorded in :attr:`results`; it does not stop
    the other files from loading.
    """

    def __init__(
        self,
        factory: Optional[ComponentFactory] = None,
        *,
        settings: Optional[ImportSettings] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.settings = settings or get_import_settings()
        self.factory: ComponentFactory = factory if factory is not None else ComponentStore()
        self._logger = logger or logging.getLogger(__name__)
        self._cancelled = threading.Event()
        self._state_lock = threading.Lock()
        self._running = False
        self._results: List[TaskResult] = []

    @property
    def results(self) -> List[TaskResult]:
        return list(self._results)

    def cancel(self) -> None:
        """Request that the running import stop at the next batch checkpoint.

        A request made while no import is running is ignored.
        """

        with self._state_lock:
            if not self._running:
                self._logger.debug("cancel ignored | no import running")
                return
            self._cancelled.set()

    def load_release_files(
        self,
        release_dir: Optional[Union[str, Path]] = None,
        profile: Optional[LoadingProfile] = None,
    ) -> Mapping[str, Concept]:
        """Classify ``release_dir`` and load it, returning the concept mapping."""

        if release_dir is not None:
            root = Path(release_dir)
        else:
            root = self.settings.resolve_release_root()
        if root is None:
            raise ReleaseDirectoryNotFoundError("No release directory given and RF2GRAPH_RELEASE_ROOT is not set")

        marker = self.settings.international_marker
        required = [FileRole.CONCEPT]
        if self.settings.require_relationship_snapshot:
            required.append(FileRole.RELATIONSHIP)
        international = find_release_files(root, partial(is_international, marker=marker), required_roles=required)
        extension = find_release_files(root, partial(is_extension, marker=marker), required_roles=())

        self._logger.info("International release files to be loaded | %s", international.describe())
        if extension.any_files_found():
            self._logger.info("Extension release files to be loaded | %s", extension.describe())

        return self.load_release_file_sets(international, extension, profile)

    def load_release_file_sets(
        self,
        international: ReleaseFiles,
        extension: Optional[ReleaseFiles] = None,
        profile: Optional[LoadingProfile] = None,
    ) -> Mapping[str, Concept]:
        """Load already classified bundles in dependency order."""

        if profile is None:
            profile = self.settings.profile
        if extension is None:
            extension = ReleaseFiles()
        self._results = []

        interrupted = False
        with self._state_lock:
            self._running = True
        executor = ThreadPoolExecutor(max_workers=self.settings.max_workers, thread_name_prefix="rf2graph")
        try:
            self._check_cancelled()
            if international.concept_snapshot is not None:
                self._logger.info("Loading International concepts")
                self._load_concepts(international.concept_snapshot, profile)
            if extension.concept_snapshot is not None:
                self._check_cancelled()
                self._logger.info("Loading Extension concepts")
                self._load_concepts(extension.concept_snapshot, profile)

            self._logger.info("Loading remaining International files")
            self._run_batch(executor, self._build_tasks(international, profile), profile)
            self._logger.info("International files loaded")

            if extension.any_files_found():
                self._logger.info("Loading remaining Extension files")
                self._run_batch(executor, self._build_tasks(extension, profile), profile)
                self._logger.info("Extension files loaded")
        except ImportInterruptedError:
            interrupted = True
            raise
        finally:
            executor.shutdown(wait=not interrupted, cancel_futures=True)
            with self._state_lock:
                self._running = False
                self._cancelled.clear()

        failed = [result for result in self._results if not result.succeeded]
        if failed:
            self._logger.warning(
                "%d file(s) failed to load; results are partial | %s",
                len(failed),
                ", ".join(result.path.name for result in failed),
            )
        concepts = self.factory.concepts
        self._logger.info(
            "All in memory | concepts=%d | rss=%s MB",
            len(concepts),
            self._resident_megabytes(),
        )
        return concepts

    def _load_concepts(self, path: Path, profile: LoadingProfile) -> None:
        task = LoadTask(FileRole.CONCEPT, path)
        handler = build_handler(task.role, self.factory, profile)
        rows = read_rows(path, handler, task.component_type, encoding=self.settings.encoding)
        self._results.append(TaskResult(task.component_type, path, succeeded=True, rows=rows))

    def _build_tasks(self, release_files: ReleaseFiles, profile: LoadingProfile) -> List[LoadTask]:
        tasks: List[LoadTask] = []
        if release_files.relationship_snapshot is not None:
            tasks.append(LoadTask(FileRole.RELATIONSHIP, release_files.relationship_snapshot))
        if release_files.description_snapshot is not None:
            tasks.append(LoadTask(FileRole.DESCRIPTION, release_files.description_snapshot))
        if profile.tracks_refsets:
            tasks.extend(LoadTask(FileRole.REFSET_MEMBER, path) for path in release_files.refset_snapshots)
        return tasks

    def _run_batch(self, executor: ThreadPoolExecutor, tasks: List[LoadTask], profile: LoadingProfile) -> None:
        if not tasks:
            return
        futures: List[Future] = [executor.submit(self._run_task, task, profile) for task in tasks]
        pending = set(futures)
        try:
            while pending:
                self._check_cancelled()
                _, pending = wait(pending, timeout=self.settings.batch_poll_seconds)
        except KeyboardInterrupt as exc:
            self._cancel_pending(pending)
            raise ImportInterruptedError("Import interrupted while waiting on a batch of loading tasks") from exc
        except ImportInterruptedError:
            self._cancel_pending(pending)
            raise
        self._results.extend(future.result() for future in futures)

    def _run_task(self, task: LoadTask, profile: LoadingProfile) -> TaskResult:
        handler = build_handler(task.role, self.factory, profile)
        try:
            rows = read_rows(task.path, handler, task.component_type, encoding=self.settings.encoding)
        except Exception as exc:
            self._logger.exception("Failed to read or process lines | %s | %s", task.component_type, task.path)
            return TaskResult(task.component_type, task.path, succeeded=False, error=exc)
        return TaskResult(task.component_type, task.path, succeeded=True, rows=rows)

    def _check_cancelled(self) -> None:
        if self._cancelled.is_set():
            raise ImportInterruptedError("Import cancelled")

    @staticmethod
    def _cancel_pending(pending: Iterable[Future]) -> None:
        for future in pending:
            future.cancel()

    @staticmethod
    def _resident_megabytes() -> str:
        rss = psutil.Process().memory_info().rss
        return f"{rss / (1024 ** 2):,.0f}"


__all__ = ["COMPONENT_TYPES", "LoadTask", "ReleaseImporter", "TaskResult"]
