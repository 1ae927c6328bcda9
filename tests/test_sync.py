"""Tests for header reconciliation and rename tracking."""

from __future__ import annotations

import asyncio

import pytest

from deadline.app import DeadlineApp
from deadline.manager import ProjectDraft
from deadline.models import Priority, Status


async def create(app: DeadlineApp, name: str, parent_id: str | None = None):
    return await app.manager.create_project(ProjectDraft(name=name), parent_id)


def edit_note(app: DeadlineApp, path: str, old: str, new: str) -> None:
    note = app.config.vault_dir / path
    text = note.read_text(encoding="utf-8")
    assert old in text
    note.write_text(text.replace(old, new, 1), encoding="utf-8")


def read_note(app: DeadlineApp, path: str) -> str:
    return (app.config.vault_dir / path).read_text(encoding="utf-8")


class TestSyncFromHeader:
    @pytest.mark.asyncio
    async def test_matching_header_is_a_no_op(self, app: DeadlineApp, notifier):
        await app.start()
        node = await create(app, "A")
        before = app.store.path.read_bytes()
        notices = len(notifier.messages)

        assert await app.sync.sync_from_header(node.external_file) is None
        assert app.store.path.read_bytes() == before
        assert len(notifier.messages) == notices

    @pytest.mark.asyncio
    async def test_drift_is_applied(self, app: DeadlineApp, notifier):
        await app.start()
        node = await create(app, "A")
        edit_note(app, node.external_file, "priority: Medium", "priority: Low")
        edit_note(app, node.external_file, "status: open", "status: done")
        edit_note(app, node.external_file, "workload: 0", "workload: 6.5")

        updated = await app.sync.sync_from_header(node.external_file)

        assert updated is not None
        stored = (await app.store.load())[0]
        assert stored.priority is Priority.LOW
        assert stored.status is Status.DONE
        assert stored.workload == 6.5
        assert stored.name == "A"
        assert app.cache.get()[0].status is Status.DONE
        assert notifier.messages[-1] == 'Project "A" updated.'

    @pytest.mark.asyncio
    async def test_rename_in_header_and_deadline(self, app: DeadlineApp):
        await app.start()
        await create(app, "A")
        sub = await create(app, "B", "1")
        edit_note(app, sub.external_file, "name: B", "name: Better name")
        edit_note(app, sub.external_file, "deadline:", "deadline: 2025-12-24")

        await app.sync.sync_from_header(sub.external_file)

        stored = (await app.store.load())[0].subprojects[0]
        assert stored.name == "Better name"
        assert stored.deadline == "2025-12-24"
        # Location and id do not follow the title
        assert stored.id == "1-1"
        assert stored.external_file == sub.external_file

    @pytest.mark.asyncio
    async def test_id_edit_is_reverted(self, app: DeadlineApp, notifier):
        await app.start()
        for name in ("A", "B", "C"):
            await create(app, name)
        sub = await create(app, "D", "3")
        assert sub.id == "3-1"
        before = app.store.path.read_bytes()

        edit_note(app, sub.external_file, 'id: "3-1"', 'id: "3-9"')
        edit_note(app, sub.external_file, "priority: Medium", "priority: High")

        assert await app.sync.sync_from_header(sub.external_file) is None

        text = read_note(app, sub.external_file)
        assert 'id: "3-1"' in text
        assert "3-9" not in text
        assert app.store.path.read_bytes() == before
        assert (await app.store.load())[2].subprojects[0].priority is Priority.MEDIUM
        assert notifier.messages[-1] == "ID change not allowed. Resetting ID to 3-1."

    @pytest.mark.asyncio
    async def test_invalid_values_are_ignored(self, app: DeadlineApp):
        await app.start()
        node = await create(app, "A")
        edit_note(app, node.external_file, "priority: Medium", "priority: urgent")
        edit_note(app, node.external_file, "workload: 0", "workload: 3")

        await app.sync.sync_from_header(node.external_file)

        stored = (await app.store.load())[0]
        assert stored.priority is Priority.MEDIUM
        assert stored.workload == 3

    @pytest.mark.asyncio
    async def test_untagged_note_is_ignored(self, app: DeadlineApp):
        await app.start()
        node = await create(app, "A")
        edit_note(app, node.external_file, "  - deadline", "  - personal")
        edit_note(app, node.external_file, "status: open", "status: done")
        before = app.store.path.read_bytes()

        assert await app.sync.sync_from_header(node.external_file) is None
        assert app.store.path.read_bytes() == before

    @pytest.mark.asyncio
    async def test_unowned_note_is_ignored(self, app: DeadlineApp, notifier):
        await app.start()
        stray = app.config.vault_dir / "stray.md"
        stray.write_text('---\nid: "1"\nname: Stray\ntags:\n  - deadline\n---\n', encoding="utf-8")

        assert await app.sync.sync_from_header("stray.md") is None
        assert notifier.messages == []

    @pytest.mark.asyncio
    async def test_scalar_tags_are_ignored(self, app: DeadlineApp, notifier):
        await app.start()
        node = await create(app, "A")
        edit_note(app, node.external_file, "tags:\n  - deadline", "tags: 5")
        before = app.store.path.read_bytes()

        assert await app.sync.sync_from_header(node.external_file) is None
        assert app.store.path.read_bytes() == before

    @pytest.mark.asyncio
    async def test_unreadable_note_is_reported(self, app: DeadlineApp, notifier):
        await app.start()
        assert await app.sync.sync_from_header("missing.md") is None
        assert "Could not sync missing.md" in notifier.messages[-1]


class TestHandleRename:
    @pytest.mark.asyncio
    async def test_updates_location_only(self, app: DeadlineApp):
        await app.start()
        node = await create(app, "A")
        assert node.external_file == "Projects/1-A/1-A.md"
        before = (await app.store.load())[0].to_record()

        moved = await app.sync.handle_rename("Projects/1-A/renamed.md", "Projects/1-A/1-A.md")

        assert moved is not None
        after = (await app.store.load())[0].to_record()
        assert after["file"] == "Projects/1-A/renamed.md"
        assert after["path"] == "Projects/1-A"
        for key in ("file", "path"):
            before.pop(key)
            after.pop(key)
        assert after == before
        assert app.cache.get()[0].external_file == "Projects/1-A/renamed.md"

    @pytest.mark.asyncio
    async def test_move_to_other_folder(self, app: DeadlineApp):
        await app.start()
        await create(app, "A")
        sub = await create(app, "B", "1")

        await app.sync.handle_rename("Archive/1-1-B.md", sub.external_file)

        stored = (await app.store.load())[0].subprojects[0]
        assert stored.external_file == "Archive/1-1-B.md"
        assert stored.external_path == "Archive"

    @pytest.mark.asyncio
    async def test_back_to_back_renames_apply_in_order(self, app: DeadlineApp, notifier):
        await app.start()
        await create(app, "A")
        trace: list[str] = []
        real_save = app.store.save

        async def slow_save(projects):
            trace.append(f"save:{projects[0].external_file}")
            await asyncio.sleep(0.01)
            await real_save(projects)

        app.store.save = slow_save

        await asyncio.gather(
            app.sync.handle_rename("Projects/1-A/second.md", "Projects/1-A/1-A.md"),
            app.sync.handle_rename("Projects/1-A/third.md", "Projects/1-A/second.md"),
        )

        assert trace == ["save:Projects/1-A/second.md", "save:Projects/1-A/third.md"]
        assert (await app.store.load())[0].external_file == "Projects/1-A/third.md"
        assert not any("not found" in m for m in notifier.messages)

    @pytest.mark.asyncio
    async def test_unknown_path(self, app: DeadlineApp, notifier):
        await app.start()
        assert await app.sync.handle_rename("b.md", "a.md") is None
        assert 'path "a.md" not found' in notifier.messages[-1]


class TestHeaderSnapshot:
    def test_only_project_notes_are_cached(self, app: DeadlineApp):
        app.sync.cache_header("a.md", {"id": "1", "tags": ["deadline"]})
        app.sync.cache_header("b.md", {"id": "2", "tags": ["other"]})
        assert app.sync.cached_header("a.md") == {"id": "1", "tags": ["deadline"]}
        assert app.sync.cached_header("b.md") is None

    @pytest.mark.asyncio
    async def test_snapshot_follows_rename(self, app: DeadlineApp):
        await app.start()
        node = await create(app, "A")
        app.sync.cache_header(node.external_file, {"id": "1", "tags": ["deadline"]})
        await app.sync.handle_rename("Projects/1-A/moved.md", node.external_file)
        assert app.sync.cached_header("Projects/1-A/moved.md") == {"id": "1", "tags": ["deadline"]}
        assert app.sync.cached_header(node.external_file) is None
