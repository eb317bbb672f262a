from __future__ import annotations

import logging
import threading
from pathlib import Path

import pytest

from rf2graph.config import ImportSettings, LoadingProfile
from rf2graph.constants import FSN, INFERRED_RELATIONSHIP, IS_A
from rf2graph.discovery import ReleaseFiles
from rf2graph.errors import (
    ImportInterruptedError,
    MalformedRowError,
    MissingReleaseFileError,
    ReleaseDirectoryNotFoundError,
)
from rf2graph.importer import ReleaseImporter
from rf2graph.store import ComponentStore

from rf2_samples import (
    CONCEPT_HEADER,
    DESCRIPTION_HEADER,
    FIXTURE_ROOT,
    REFSET_HEADER,
    RELATIONSHIP_HEADER,
)

MODULE = "900000000000207008"
PRIMITIVE = "900000000000074008"
SOME = "900000000000451002"


def _importer(store: ComponentStore | None = None, **overrides) -> ReleaseImporter:
    settings = ImportSettings(batch_poll_seconds=0.05, **overrides)
    return ReleaseImporter(store or ComponentStore(), settings=settings)


def _concept_row(concept_id: str, active: str = "1"):
    return (concept_id, "20020131", active, MODULE, PRIMITIVE)


def _is_a(relationship_id: str, source: str, destination: str, active: str = "1"):
    return (relationship_id, "20020131", active, MODULE, source, destination, "0", IS_A, INFERRED_RELATIONSHIP, SOME)


def _fsn(description_id: str, concept_id: str, term: str):
    return (description_id, "20020131", "1", MODULE, concept_id, "en", FSN, term, "900000000000448009")


def test_single_active_concept_gets_label(tmp_path: Path, write_rf2) -> None:
    write_rf2(tmp_path / "sct2_Concept_Snapshot_INT_20240101.txt", CONCEPT_HEADER, [_concept_row("100005")])
    write_rf2(
        tmp_path / "sct2_Description_Snapshot-en_INT_20240101.txt",
        DESCRIPTION_HEADER,
        [_fsn("101013", "100005", "Example concept")],
    )

    concepts = _importer().load_release_files(tmp_path, LoadingProfile())

    assert list(concepts) == ["100005"]
    assert concepts["100005"].fsn == "Example concept"
    assert concepts["100005"].parents == set()


def test_inactive_concept_excluded_by_default(tmp_path: Path, write_rf2) -> None:
    write_rf2(tmp_path / "sct2_Concept_Snapshot_INT_20240101.txt", CONCEPT_HEADER, [_concept_row("100005", "0")])
    write_rf2(
        tmp_path / "sct2_Description_Snapshot-en_INT_20240101.txt",
        DESCRIPTION_HEADER,
        [_fsn("101013", "100005", "Example concept")],
    )

    concepts = _importer().load_release_files(tmp_path, LoadingProfile(inactive_concepts=False))

    assert dict(concepts) == {}


def test_fixture_release_with_default_profile() -> None:
    importer = _importer()
    concepts = importer.load_release_files(FIXTURE_ROOT)

    assert set(concepts) == {"138875005", "404684003", "22298006", "11000146104"}
    assert concepts["404684003"].parents == {"138875005"}
    assert concepts["22298006"].parents == {"404684003"}
    assert concepts["22298006"].fsn == "Myocardial infarction (disorder)"
    assert concepts["22298006"].attributes == {}
    assert concepts["11000146104"].parents == {"22298006"}
    assert concepts["11000146104"].fsn == "Acuut myocardinfarct (aandoening)"
    assert all(not concept.member_of_refsets for concept in concepts.values())

    results = importer.results
    assert all(result.succeeded for result in results)
    assert [result.component_type for result in results] == [
        "concepts",
        "concepts",
        "relationships",
        "descriptions",
        "relationships",
        "descriptions",
    ]
    assert results[0].rows == 4


def test_fixture_release_with_full_profile() -> None:
    store = ComponentStore()
    concepts = _importer(store).load_release_files(FIXTURE_ROOT, LoadingProfile.full())

    assert "100102" in concepts
    infarction = concepts["22298006"]
    assert infarction.parents == {"404684003", "138875005", "64572001"}
    assert infarction.attributes["363698007"] == {"74281007"}
    # The inactive FSN row follows the active one in the file.
    assert infarction.fsn == "Cardiac infarction (disorder)"
    assert infarction.member_of_refsets == {"723264001"}
    assert store.refset_members("723264001") == {"22298006", "404684003"}
    assert store.refset_members("900000000000509007") == set()
    assert len(store.relationships) == 6
    assert len(store.descriptions) == 6
    assert store.ancestor_ids("11000146104") >= {"22298006", "404684003", "138875005"}


def test_complete_profile_skips_inactive_members_and_relationships() -> None:
    store = ComponentStore()
    concepts = _importer(store).load_release_files(FIXTURE_ROOT, LoadingProfile.complete())

    assert concepts["22298006"].parents == {"404684003", "64572001"}
    assert store.refset_members("723264001") == {"22298006"}
    assert "100003026" not in store.relationships


def test_refset_files_not_read_without_tracked_refsets() -> None:
    importer = _importer()
    importer.load_release_files(FIXTURE_ROOT, LoadingProfile())
    assert "reference set members" not in {result.component_type for result in importer.results}


def test_parent_edges_from_both_origins_survive(tmp_path: Path, write_rf2) -> None:
    store = ComponentStore()
    store.create_concept("22298006", "20020131", "1", MODULE, PRIMITIVE)
    international = ReleaseFiles(
        relationship_snapshot=write_rf2(
            tmp_path / "sct2_Relationship_Snapshot_INT_20240101.txt",
            RELATIONSHIP_HEADER,
            [_is_a("100001022", "22298006", "404684003")],
        )
    )
    extension = ReleaseFiles(
        relationship_snapshot=write_rf2(
            tmp_path / "sct2_Relationship_Snapshot_NL1000146_20240101.txt",
            RELATIONSHIP_HEADER,
            [_is_a("21000146127", "22298006", "11000146104")],
        )
    )

    concepts = _importer(store).load_release_file_sets(international, extension, LoadingProfile())

    assert concepts["22298006"].parents == {"404684003", "11000146104"}


def test_concurrent_refset_tasks_append_to_same_concept(tmp_path: Path, write_rf2) -> None:
    store = ComponentStore()
    store.create_concept("100005", "20020131", "1", MODULE, PRIMITIVE)
    refset_ids = [f"7000{index:02d}001" for index in range(20)]
    files = ReleaseFiles(
        refset_snapshots=[
            write_rf2(
                tmp_path / f"der2_Refset_Simple{index}Snapshot_INT_20240101.txt",
                REFSET_HEADER,
                [(f"uuid-{index}", "20200131", "1", MODULE, refset_id, "100005")],
            )
            for index, refset_id in enumerate(refset_ids)
        ]
    )

    importer = _importer(store, max_workers=8)
    concepts = importer.load_release_file_sets(files, None, LoadingProfile().with_all_refsets())

    assert concepts["100005"].member_of_refsets == set(refset_ids)
    assert len(importer.results) == 20


def test_relationship_for_unknown_concept_does_not_raise(tmp_path: Path, write_rf2) -> None:
    write_rf2(tmp_path / "sct2_Concept_Snapshot_INT_20240101.txt", CONCEPT_HEADER, [_concept_row("138875005")])
    write_rf2(
        tmp_path / "sct2_Relationship_Snapshot_INT_20240101.txt",
        RELATIONSHIP_HEADER,
        [_is_a("100001022", "22298006", "138875005")],
    )
    store = ComponentStore()
    importer = _importer(store)

    concepts = importer.load_release_files(tmp_path)

    assert set(concepts) == {"138875005"}
    assert store.dangling_parents == {"22298006": {"138875005"}}
    assert all(result.succeeded for result in importer.results)


def test_failing_file_does_not_abort_siblings(
    tmp_path: Path, write_rf2, caplog: pytest.LogCaptureFixture
) -> None:
    write_rf2(
        tmp_path / "sct2_Concept_Snapshot_INT_20240101.txt",
        CONCEPT_HEADER,
        [_concept_row("138875005"), _concept_row("404684003")],
    )
    write_rf2(
        tmp_path / "sct2_Relationship_Snapshot_INT_20240101.txt",
        RELATIONSHIP_HEADER,
        [_is_a("100000028", "404684003", "138875005")],
    )
    write_rf2(
        tmp_path / "sct2_Description_Snapshot-en_INT_20240101.txt",
        DESCRIPTION_HEADER,
        [("102019", "20020131", "1")],
    )
    importer = _importer()

    with caplog.at_level(logging.ERROR, logger="rf2graph.importer"):
        concepts = importer.load_release_files(tmp_path)

    assert concepts["404684003"].parents == {"138875005"}
    failed = [result for result in importer.results if not result.succeeded]
    assert len(failed) == 1
    assert failed[0].component_type == "descriptions"
    assert isinstance(failed[0].error, MalformedRowError)
    assert "Failed to read or process lines" in caplog.text


def test_missing_release_directory(tmp_path: Path) -> None:
    with pytest.raises(ReleaseDirectoryNotFoundError):
        _importer().load_release_files(tmp_path / "missing")


def test_release_directory_required_when_not_configured(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("RF2GRAPH_RELEASE_ROOT", raising=False)
    with pytest.raises(ReleaseDirectoryNotFoundError):
        _importer().load_release_files()


def test_configured_release_root_is_used() -> None:
    concepts = _importer(release_root=FIXTURE_ROOT).load_release_files()
    assert "22298006" in concepts


def test_missing_concept_file_is_a_setup_error(tmp_path: Path, write_rf2) -> None:
    write_rf2(tmp_path / "sct2_Relationship_Snapshot_INT_20240101.txt", RELATIONSHIP_HEADER, [])
    with pytest.raises(MissingReleaseFileError):
        _importer().load_release_files(tmp_path)


def test_relationship_file_can_be_required(tmp_path: Path, write_rf2) -> None:
    write_rf2(tmp_path / "sct2_Concept_Snapshot_INT_20240101.txt", CONCEPT_HEADER, [_concept_row("100005")])
    with pytest.raises(MissingReleaseFileError):
        _importer(require_relationship_snapshot=True).load_release_files(tmp_path)




class _BlockingStore(ComponentStore):
    """Holds the first parent edge until the test releases it."""

    def __init__(self) -> None:
        super().__init__()
        self.started = threading.Event()
        self.release = threading.Event()

    def add_concept_parent(self, source_id: str, destination_id: str) -> None:
        self.started.set()
        self.release.wait(timeout=10)
        super().add_concept_parent(source_id, destination_id)


def _write_small_release(root: Path, write_rf2) -> None:
    write_rf2(
        root / "sct2_Concept_Snapshot_INT_20240101.txt",
        CONCEPT_HEADER,
        [_concept_row("138875005"), _concept_row("404684003")],
    )
    write_rf2(
        root / "sct2_Relationship_Snapshot_INT_20240101.txt",
        RELATIONSHIP_HEADER,
        [_is_a("100000028", "404684003", "138875005")],
    )
    write_rf2(
        root / "sct2_Description_Snapshot-en_INT_20240101.txt",
        DESCRIPTION_HEADER,
        [_fsn("101013", "404684003", "Clinical finding (finding)")],
    )


def test_cancel_while_batch_runs_interrupts_import(tmp_path: Path, write_rf2) -> None:
    _write_small_release(tmp_path, write_rf2)
    store = _BlockingStore()
    importer = _importer(store)

    def _cancel_once_started() -> None:
        store.started.wait(timeout=10)
        importer.cancel()

    canceller = threading.Thread(target=_cancel_once_started)
    canceller.start()
    try:
        with pytest.raises(ImportInterruptedError):
            importer.load_release_files(tmp_path)
    finally:
        store.release.set()
        canceller.join()

    assert [result.component_type for result in importer.results] == ["concepts"]


def test_keyboard_interrupt_cancels_queued_tasks(
    tmp_path: Path, write_rf2, monkeypatch: pytest.MonkeyPatch
) -> None:
    _write_small_release(tmp_path, write_rf2)
    store = _BlockingStore()
    waited_on = []

    def _interrupted_wait(futures, timeout=None):
        waited_on.extend(futures)
        raise KeyboardInterrupt

    monkeypatch.setattr("rf2graph.importer.wait", _interrupted_wait)
    importer = _importer(store, max_workers=1)

    try:
        with pytest.raises(ImportInterruptedError) as excinfo:
            importer.load_release_files(tmp_path)
    finally:
        store.release.set()

    assert isinstance(excinfo.value.__cause__, KeyboardInterrupt)
    assert len(waited_on) == 2
    # The single worker is held by the relationship task, so the description task is still queued.
    assert any(future.cancelled() for future in waited_on)
    assert store.concepts["404684003"].fsn is None


def test_cancel_without_running_import_is_ignored() -> None:
    importer = _importer()
    importer.cancel()

    concepts = importer.load_release_files(FIXTURE_ROOT)

    assert "22298006" in concepts
