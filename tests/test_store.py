"""Tests for the persisted tree document."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from deadline.errors import StorageError, StoreCorruptError
from deadline.models import ProjectNode
from deadline.store import ProjectStore


@pytest.fixture
def store(tmp_path: Path) -> ProjectStore:
    return ProjectStore(tmp_path / "data" / "projects.json")


class TestLoad:
    @pytest.mark.asyncio
    async def test_creates_missing_document(self, store: ProjectStore):
        assert await store.load() == []
        assert json.loads(store.path.read_text(encoding="utf-8")) == {"projects": []}

    @pytest.mark.asyncio
    async def test_restores_nested_projects(self, store: ProjectStore):
        store.path.parent.mkdir(parents=True)
        store.path.write_text(
            json.dumps(
                {
                    "projects": [
                        {
                            "id": "1",
                            "name": "A",
                            "status": "open",
                            "subprojects": [{"id": "1-1", "name": "B", "status": "done", "subprojects": []}],
                        }
                    ]
                }
            ),
            encoding="utf-8",
        )
        projects = await store.load()
        assert [p.id for p in projects] == ["1"]
        assert projects[0].timelog == []
        assert projects[0].subprojects[0].name == "B"
        assert projects[0].subprojects[0].total_time() == 0

    @pytest.mark.asyncio
    async def test_corrupt_json_is_an_error(self, store: ProjectStore):
        store.path.parent.mkdir(parents=True)
        store.path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StoreCorruptError):
            await store.load()
        # The damaged file is left for the user to inspect
        assert store.path.read_text(encoding="utf-8") == "{not json"

    @pytest.mark.asyncio
    async def test_wrong_shape_is_an_error(self, store: ProjectStore):
        store.path.parent.mkdir(parents=True)
        store.path.write_text('{"items": []}', encoding="utf-8")
        with pytest.raises(StoreCorruptError, match="projects"):
            await store.load()

    @pytest.mark.asyncio
    async def test_record_without_id_is_an_error(self, store: ProjectStore):
        store.path.parent.mkdir(parents=True)
        store.path.write_text('{"projects": [{"name": "A"}]}', encoding="utf-8")
        with pytest.raises(StoreCorruptError):
            await store.load()


class TestSave:
    @pytest.mark.asyncio
    async def test_save_then_load(self, store: ProjectStore):
        project = ProjectNode(id="1", name="A", external_path="P/1-A", external_file="P/1-A/1-A.md")
        project.add_timelog("20250101 09:00", 2.0, "kickoff")
        project.subprojects.append(ProjectNode(id="1-1", name="B"))

        await store.save([project])
        loaded = await store.load()

        assert loaded == [project]
        raw = json.loads(store.path.read_text(encoding="utf-8"))
        assert raw["projects"][0]["file"] == "P/1-A/1-A.md"
        assert raw["projects"][0]["subprojects"][0]["id"] == "1-1"

    @pytest.mark.asyncio
    async def test_write_failure_raises(self, tmp_path: Path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a folder", encoding="utf-8")
        store = ProjectStore(blocker / "projects.json")
        with pytest.raises(StorageError):
            await store.save([])
