"""
Tests for tasks, folders and artifacts.
"""

import pytest

from tests.fixtures.fixture_ledger import ARTIFACT_ID, ENTRY_IDS, FOLDER_ID, TASK_A, TASK_B
from timeledger import AlreadyExists, FolderUpdate, InvalidInput, NotFound, TaskUpdate, config

MISSING_ID = "99999999-9999-4999-8999-999999999999"


class TestTasks:
    def test_create_defaults(self, ledger):
        task = ledger.tasks.create("Write report")
        assert task.color == config.DEFAULT_TASK_COLOR == "#3b82f6"
        assert task.archived is False
        assert ledger.tasks.get(task.id).name == "Write report"

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_blank_name(self, ledger, name):
        with pytest.raises(InvalidInput):
            ledger.tasks.create(name)

    def test_bad_color(self, ledger):
        with pytest.raises(InvalidInput, match="color"):
            ledger.tasks.create("Task", color="blue")

    def test_update_only_supplied_fields(self, seeded_ledger):
        task = seeded_ledger.tasks.update(TASK_A, TaskUpdate(color="#00ff00"))
        assert task.color == "#00ff00"
        assert task.name == "Task A"
        assert task.description == "Design review"

    def test_update_clears_folder(self, seeded_ledger):
        task = seeded_ledger.tasks.update(TASK_A, TaskUpdate(folder_id=None))
        assert task.folder_id is None

    def test_archive_hides_from_list(self, seeded_ledger):
        seeded_ledger.tasks.archive(TASK_B)
        assert [t.id for t in seeded_ledger.tasks.list()] == [TASK_A]
        assert {t.id for t in seeded_ledger.tasks.list(include_archived=True)} == {TASK_A, TASK_B}

        seeded_ledger.tasks.archive(TASK_B, archived=False)
        assert len(seeded_ledger.tasks.list()) == 2

    def test_unknown(self, ledger):
        with pytest.raises(NotFound):
            ledger.tasks.get(MISSING_ID)
        with pytest.raises(NotFound):
            ledger.tasks.update(MISSING_ID, TaskUpdate(name="x"))


class TestFolders:
    def test_sort_order_appends(self, seeded_ledger):
        folder = seeded_ledger.folders.create("  Internal  ", icon="home")
        assert folder.name == "Internal"
        assert folder.sort_order == 2
        assert folder.color == config.DEFAULT_FOLDER_COLOR
        assert [f.id for f in seeded_ledger.folders.list()] == [FOLDER_ID, folder.id]

    def test_first_folder(self, ledger):
        assert ledger.folders.create("First").sort_order == 1

    def test_update(self, seeded_ledger):
        folder = seeded_ledger.folders.update(FOLDER_ID, FolderUpdate(icon=None, sort_order=5))
        assert folder.icon is None
        assert folder.sort_order == 5
        assert folder.name == "Client work"

    def test_update_rejects_bad_sort_order(self, seeded_ledger):
        with pytest.raises(InvalidInput):
            seeded_ledger.folders.update(FOLDER_ID, FolderUpdate(sort_order="first"))

    def test_delete_releases_tasks(self, seeded_ledger):
        released = seeded_ledger.folders.delete(FOLDER_ID)
        assert released == 1
        assert seeded_ledger.tasks.get(TASK_A).folder_id is None
        assert seeded_ledger.folders.list() == []

    def test_delete_unknown(self, ledger):
        with pytest.raises(NotFound):
            ledger.folders.delete(MISSING_ID)


class TestArtifacts:
    def test_create_and_link(self, ledger):
        entry = ledger.start()
        artifact = ledger.artifacts.create("PR", "pull_request", "https://example.com/pr/1", {"n": 1}, entry.id)

        running = ledger.get_running()
        assert [a.id for a in running.artifacts] == [artifact.id]
        assert ledger.artifacts.get(artifact.id).metadata == {"n": 1}

    def test_create_for_unknown_entry_rolls_back(self, ledger):
        with pytest.raises(NotFound):
            ledger.artifacts.create("PR", "pull_request", entry_id=MISSING_ID)
        assert ledger.artifacts.list() == []

    def test_link_twice(self, seeded_ledger):
        with pytest.raises(AlreadyExists):
            seeded_ledger.artifacts.link(ENTRY_IDS[1], ARTIFACT_ID)

    def test_link_missing_side(self, seeded_ledger):
        with pytest.raises(NotFound):
            seeded_ledger.artifacts.link(MISSING_ID, ARTIFACT_ID)
        with pytest.raises(NotFound):
            seeded_ledger.artifacts.link(ENTRY_IDS[0], MISSING_ID)

    def test_unlink(self, seeded_ledger):
        seeded_ledger.artifacts.unlink(ENTRY_IDS[1], ARTIFACT_ID)
        assert seeded_ledger.entries.get(ENTRY_IDS[1]).artifacts == []
        with pytest.raises(NotFound):
            seeded_ledger.artifacts.unlink(ENTRY_IDS[1], ARTIFACT_ID)

    def test_delete_removes_links(self, seeded_ledger):
        seeded_ledger.artifacts.delete(ARTIFACT_ID)
        assert seeded_ledger.entries.get(ENTRY_IDS[1]).artifacts == []
        with pytest.raises(NotFound):
            seeded_ledger.artifacts.get(ARTIFACT_ID)

    def test_list_limit(self, ledger):
        for i in range(3):
            ledger.artifacts.create(f"doc {i}", "document")
        assert len(ledger.artifacts.list(limit=2)) == 2
        with pytest.raises(InvalidInput):
            ledger.artifacts.list(limit=-1)
