"""Tests for the debounced note editor buffer."""

import asyncio

from vidnotes.services.note_editor import NoteEditorSession

DELAY = 0.05


async def _open_new_note(cloud, editor, video_id="vid"):
    note = await cloud.create_note(video_id, "Title", "url")
    editor.open(note)
    return note


def test_burst_of_keystrokes_commits_once(cloud, notes_collection):
    async def scenario():
        editor = NoteEditorSession(cloud, delay=DELAY)
        await _open_new_note(cloud, editor)
        text = ""
        for ch in "hello world":
            text += ch
            editor.type(text)
            await asyncio.sleep(DELAY / 10)
        await asyncio.sleep(DELAY * 3)

    asyncio.run(scenario())
    assert notes_collection.count("find_one_and_update") == 1
    assert notes_collection.docs[0]["content"] == "hello world"
    assert cloud.current_note.content == "hello world"


def test_unchanged_buffer_is_not_committed(cloud, notes_collection):
    async def scenario():
        editor = NoteEditorSession(cloud, delay=DELAY)
        await _open_new_note(cloud, editor)
        editor.type("draft")
        editor.type("")
        await editor.flush()

    asyncio.run(scenario())
    assert notes_collection.count("find_one_and_update") == 0


def test_switching_notes_cancels_pending_commit(cloud, notes_collection):
    async def scenario():
        editor = NoteEditorSession(cloud, delay=DELAY)
        await _open_new_note(cloud, editor, "first")
        editor.type("unsaved prose")
        second = await cloud.create_note("second", "Other", "url")
        editor.open(second)
        await asyncio.sleep(DELAY * 3)
        return editor

    editor = asyncio.run(scenario())
    assert notes_collection.count("find_one_and_update") == 0
    assert editor.content == ""


def test_reopening_same_note_keeps_buffer(cloud):
    async def scenario():
        editor = NoteEditorSession(cloud, delay=DELAY)
        note = await _open_new_note(cloud, editor)
        editor.type("typing")
        editor.open(note)
        pending = editor.has_pending_commit
        editor.close()
        return editor, pending

    editor, pending = asyncio.run(scenario())
    assert pending is True
    assert editor.note_id is None


def test_save_commits_immediately_and_confirms(cloud, notes_collection, notifier):
    async def scenario():
        editor = NoteEditorSession(cloud, delay=10)
        await _open_new_note(cloud, editor)
        editor.type("saved by hand")
        saved = await editor.save()
        return editor, saved

    editor, saved = asyncio.run(scenario())
    assert saved.content == "saved by hand"
    assert editor.has_pending_commit is False
    assert notes_collection.count("find_one_and_update") == 1
    assert notifier.latest.title == "Saved!"


def test_add_tag_carries_buffer_forward(cloud, notes_collection):
    async def scenario():
        editor = NoteEditorSession(cloud, delay=10)
        await _open_new_note(cloud, editor)
        editor.type("half-written thought")
        return await editor.add_tag("  python ")

    note = asyncio.run(scenario())
    assert note.tags == ["python"]
    assert note.content == "half-written thought"
    assert notes_collection.docs[0]["content"] == "half-written thought"


def test_duplicate_tag_rejected(cloud, notes_collection, notifier):
    async def scenario():
        editor = NoteEditorSession(cloud, delay=DELAY)
        await _open_new_note(cloud, editor)
        await editor.add_tag("math")
        writes = notes_collection.count("find_one_and_update")
        result = await editor.add_tag("math")
        return writes, result

    writes, result = asyncio.run(scenario())
    assert result is None
    assert notes_collection.count("find_one_and_update") == writes
    assert notifier.latest.title == "Tag exists"


def test_tag_comparison_is_case_sensitive(cloud):
    async def scenario():
        editor = NoteEditorSession(cloud, delay=DELAY)
        await _open_new_note(cloud, editor)
        await editor.add_tag("Math")
        return await editor.add_tag("math")

    note = asyncio.run(scenario())
    assert note.tags == ["Math", "math"]


def test_empty_tag_rejected(cloud, notes_collection):
    async def scenario():
        editor = NoteEditorSession(cloud, delay=DELAY)
        await _open_new_note(cloud, editor)
        return await editor.add_tag("   ")

    assert asyncio.run(scenario()) is None
    assert notes_collection.count("find_one_and_update") == 0


def test_remove_tag(cloud):
    async def scenario():
        editor = NoteEditorSession(cloud, delay=DELAY)
        await _open_new_note(cloud, editor)
        await editor.add_tag("a")
        await editor.add_tag("b")
        return await editor.remove_tag("a")

    assert asyncio.run(scenario()).tags == ["b"]


def test_add_timestamp_default_label(cloud, notifier):
    async def scenario():
        editor = NoteEditorSession(cloud, delay=DELAY)
        await _open_new_note(cloud, editor)
        editor.type("notes so far")
        return await editor.add_timestamp(75.0)

    note = asyncio.run(scenario())
    assert note.timestamps[0].label == "Timestamp at 1:15"
    assert note.content == "notes so far"
    assert notifier.latest.title == "Timestamp added"


def test_remove_timestamp_through_editor(cloud):
    async def scenario():
        editor = NoteEditorSession(cloud, delay=DELAY)
        await _open_new_note(cloud, editor)
        note = await editor.add_timestamp(3.0, "intro")
        return await editor.remove_timestamp(note.timestamps[0].id)

    assert asyncio.run(scenario()).timestamps == []


def test_visibility_toggle_notifies_and_keeps_buffer(cloud, notes_collection, notifier):
    async def scenario():
        editor = NoteEditorSession(cloud, delay=10)
        await _open_new_note(cloud, editor)
        editor.type("shared thoughts")
        public = await editor.set_visibility(True)
        public_title = notifier.latest.title
        private = await editor.set_visibility(False)
        return public, public_title, private

    public, public_title, private = asyncio.run(scenario())
    assert public.is_public is True
    assert public.content == "shared thoughts"
    assert public_title == "Note is now public"
    assert private.is_public is False
    assert notifier.latest.title == "Note is now private"
    assert notes_collection.docs[0]["is_public"] is False
