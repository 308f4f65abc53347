"""Tests for create-mode sessions: draft restore, section switching and structure edits."""

import asyncio
import json

import pytest

from form_helpers import TEST_DEBOUNCE_SECONDS, form_with, label_of, settle
from formdraft.exceptions import (
    InvalidSectionNameError,
    InvalidSessionStateError,
    LastSectionError,
    SectionNotFoundError,
)
from formdraft.fragments import default_form
from formdraft.sessions import SessionSettings, SessionState
from formdraft.validation import DraftRecord, FormType, Section

DRAFT_KEY = "form_builder_draft"


def _stored_draft(storage):
    raw = storage.get_item(DRAFT_KEY)
    return DraftRecord.model_validate_json(raw) if raw else None


def _write_draft(storage, **fields):
    storage.set_item(DRAFT_KEY, DraftRecord(**fields).model_dump_json())


def _section(section_id, order, label):
    return Section(
        section_id=section_id,
        section_name=section_id.upper(),
        order=order,
        content_fragment=json.dumps(form_with(label)),
    )


class TestStart:
    @pytest.mark.asyncio
    async def test_fresh_start(self, make_controller, editor, notifier):
        ctrl = make_controller()
        await ctrl.start()

        assert ctrl.state is SessionState.READY
        assert ctrl.form_type is FormType.SINGLE
        assert [s.section_id for s in ctrl.sections] == ["section_1"]
        assert json.loads(editor.last_loaded) == default_form()
        assert notifier.messages() == []

    @pytest.mark.asyncio
    async def test_restore_multi_step_draft(self, make_controller, editor, storage, notifier):
        _write_draft(
            storage,
            form_type="multi-step",
            template_name="Survey",
            sections=[_section("a", 1, "first"), _section("b", 2, "second")],
            selected_section_id="b",
        )
        writes_before = storage.write_count

        ctrl = make_controller()
        await ctrl.start()

        assert ctrl.metadata.template_name == "Survey"
        assert ctrl.active_section_id == "b"
        assert label_of(editor.last_loaded) == "second"
        assert notifier.messages() == ["Draft restored from previous session"]
        await settle()
        assert storage.write_count == writes_before

    @pytest.mark.asyncio
    async def test_no_autosave_until_restore_finishes(self, make_controller, editor, storage):
        """Draft writes requested mid-restore never overwrite the stored draft."""
        _write_draft(
            storage,
            form_type="multi-step",
            template_name="Survey",
            sections=[_section("a", 1, "first"), _section("b", 2, "second")],
            selected_section_id="b",
        )
        stored = storage.get_item(DRAFT_KEY)
        writes_before = storage.write_count
        slow_push = SessionSettings(
            draft_debounce_seconds=TEST_DEBOUNCE_SECONDS,
            push_delay_seconds=TEST_DEBOUNCE_SECONDS * 6,
        )
        ctrl = make_controller(settings_override=slow_push)

        start = asyncio.ensure_future(ctrl.start())
        while ctrl.state is not SessionState.RESTORING:
            await asyncio.sleep(0)

        ctrl.drafts.schedule_save(ctrl._draft_record)
        assert ctrl.drafts.flush(ctrl._draft_record) is False
        await settle()

        assert ctrl.state is SessionState.RESTORING
        assert storage.write_count == writes_before
        assert storage.get_item(DRAFT_KEY) == stored

        await start
        assert ctrl.state is SessionState.READY
        assert label_of(editor.last_loaded) == "second"

        editor.type("edited")
        await ctrl.pull_active_section()
        await settle()
        restored = _stored_draft(storage)
        assert storage.write_count == writes_before + 1
        assert restored.template_name == "Survey"
        assert [s.section_id for s in restored.sections] == ["a", "b"]
        assert label_of(restored.sections[0].content_fragment) == "first"
        assert label_of(restored.sections[1].content_fragment) == "edited"

    @pytest.mark.asyncio
    async def test_restore_single_form_ignores_selected(self, make_controller, storage):
        _write_draft(storage, sections=[_section("a", 1, "only")], selected_section_id="zzz")
        ctrl = make_controller()
        await ctrl.start()
        assert ctrl.active_section_id == "a"

    @pytest.mark.asyncio
    async def test_restore_unknown_selection_falls_back_to_first(self, make_controller, storage):
        _write_draft(
            storage,
            form_type="multi-step",
            sections=[_section("a", 1, "x"), _section("b", 2, "y")],
            selected_section_id="gone",
        )
        ctrl = make_controller()
        await ctrl.start()
        assert ctrl.active_section_id == "a"

    @pytest.mark.asyncio
    async def test_corrupt_draft_ignored(self, make_controller, storage, notifier):
        storage.set_item(DRAFT_KEY, "{not json")
        ctrl = make_controller()
        await ctrl.start()
        assert ctrl.state is SessionState.READY
        assert ctrl.sections[0].section_id == "section_1"
        assert notifier.messages() == []

    @pytest.mark.asyncio
    async def test_editor_rejects_restored_fragment(self, make_controller, editor, storage, notifier):
        _write_draft(storage, sections=[_section("a", 1, "x")])
        editor.load_error = RuntimeError("editor not mounted")
        ctrl = make_controller()
        await ctrl.start()
        assert ctrl.state is SessionState.READY
        assert notifier.messages() == []

    @pytest.mark.asyncio
    async def test_operations_before_start_rejected(self, make_controller):
        ctrl = make_controller()
        with pytest.raises(InvalidSessionStateError):
            await ctrl.add_section("Too early")
        with pytest.raises(InvalidSessionStateError):
            ctrl.update_metadata(template_name="x")

    @pytest.mark.asyncio
    async def test_start_twice_rejected(self, make_controller):
        ctrl = make_controller()
        await ctrl.start()
        with pytest.raises(InvalidSessionStateError):
            await ctrl.start()


class TestSwitching:
    @pytest.mark.asyncio
    async def test_switch_pulls_before_push(self, make_controller, editor):
        ctrl = make_controller()
        await ctrl.start()

        editor.type("one")
        second = await ctrl.add_section("Second")
        assert ctrl.active_section_id == second
        assert json.loads(editor.last_loaded) == default_form()

        editor.type("two")
        await ctrl.switch_active_section("section_1")
        assert label_of(editor.last_loaded) == "one"

        await ctrl.switch_active_section(second)
        assert label_of(editor.last_loaded) == "two"

        contents = {s.section_id: label_of(s.content_fragment) for s in ctrl.sections}
        assert contents == {"section_1": "one", second: "two"}

    @pytest.mark.asyncio
    async def test_switch_to_active_is_noop(self, make_controller, editor):
        ctrl = make_controller()
        await ctrl.start()
        loads = len(editor.loads)
        await ctrl.switch_active_section("section_1")
        assert len(editor.loads) == loads

    @pytest.mark.asyncio
    async def test_switch_unknown_section(self, make_controller):
        ctrl = make_controller()
        await ctrl.start()
        with pytest.raises(SectionNotFoundError):
            await ctrl.switch_active_section("missing")
        assert ctrl.active_section_id == "section_1"

    @pytest.mark.asyncio
    async def test_snapshot_failure_keeps_stored_content(self, make_controller, editor):
        ctrl = make_controller()
        await ctrl.start()
        editor.type("kept")
        await ctrl.pull_active_section()

        editor.snapshot_error = RuntimeError("editor busy")
        second = await ctrl.add_section("Second")
        assert ctrl.active_section_id == second
        assert label_of(ctrl.sections[0].content_fragment) == "kept"

    @pytest.mark.asyncio
    async def test_concurrent_switches_serialised(self, make_controller, editor):
        ctrl = make_controller()
        await ctrl.start()
        editor.type("one")
        second = await ctrl.add_section("Second")
        editor.type("two")

        await asyncio.gather(
            ctrl.switch_active_section("section_1"),
            ctrl.switch_active_section(second),
        )

        contents = {s.section_id: label_of(s.content_fragment) for s in ctrl.sections}
        assert contents == {"section_1": "one", second: "two"}
        assert ctrl.active_section_id == second
        assert label_of(editor.last_loaded) == "two"


class TestStructure:
    @pytest.mark.asyncio
    async def test_add_section_switches_to_multi_step(self, make_controller):
        ctrl = make_controller()
        await ctrl.start()
        await ctrl.add_section("Two")
        assert ctrl.form_type is FormType.MULTI_STEP
        assert [s.order for s in ctrl.sections] == [1, 2]

    @pytest.mark.asyncio
    async def test_add_blank_name_rejected(self, make_controller):
        ctrl = make_controller()
        await ctrl.start()
        with pytest.raises(InvalidSectionNameError):
            await ctrl.add_section("  ")
        assert len(ctrl.sections) == 1

    @pytest.mark.asyncio
    async def test_remove_last_section_refused(self, make_controller):
        ctrl = make_controller()
        await ctrl.start()
        with pytest.raises(LastSectionError):
            await ctrl.remove_section("section_1")

    @pytest.mark.asyncio
    async def test_remove_active_shows_first(self, make_controller, editor):
        ctrl = make_controller()
        await ctrl.start()
        editor.type("first")
        second = await ctrl.add_section("Second")
        await ctrl.remove_section(second)

        assert ctrl.active_section_id == "section_1"
        assert label_of(editor.last_loaded) == "first"
        assert ctrl.form_type is FormType.MULTI_STEP

    @pytest.mark.asyncio
    async def test_remove_auto_downgrades_when_enabled(self, make_controller):
        settings = SessionSettings(
            draft_debounce_seconds=TEST_DEBOUNCE_SECONDS,
            push_delay_seconds=0,
            auto_downgrade_single=True,
        )
        ctrl = make_controller(settings_override=settings)
        await ctrl.start()
        second = await ctrl.add_section("Second")
        await ctrl.remove_section(second)
        assert ctrl.form_type is FormType.SINGLE

    @pytest.mark.asyncio
    @pytest.mark.parametrize("auto_downgrade, expected", [(False, FormType.MULTI_STEP), (True, FormType.SINGLE)])
    async def test_remove_first_of_two(self, make_controller, auto_downgrade, expected):
        settings = SessionSettings(
            draft_debounce_seconds=TEST_DEBOUNCE_SECONDS,
            push_delay_seconds=0,
            auto_downgrade_single=auto_downgrade,
        )
        ctrl = make_controller(settings_override=settings)
        await ctrl.start()
        second = await ctrl.add_section("Section 2")
        assert ctrl.form_type is FormType.MULTI_STEP
        assert [s.order for s in ctrl.sections] == [1, 2]

        await ctrl.remove_section("section_1")

        assert [(s.section_id, s.order) for s in ctrl.sections] == [(second, 1)]
        assert ctrl.active_section_id == second
        assert ctrl.form_type is expected

    @pytest.mark.asyncio
    async def test_rename_active_preserves_content(self, make_controller, editor):
        ctrl = make_controller()
        await ctrl.start()
        editor.type("content")
        assert await ctrl.rename_active_section("Intro") is True

        assert ctrl.active_section.section_name == "Intro"
        assert label_of(editor.last_loaded) == "content"

    @pytest.mark.asyncio
    async def test_rename_blank_is_noop(self, make_controller):
        ctrl = make_controller()
        await ctrl.start()
        assert await ctrl.rename_section("section_1", "   ") is False
        assert ctrl.active_section.section_name == "Section 1"

    @pytest.mark.asyncio
    async def test_rename_inactive(self, make_controller, editor):
        ctrl = make_controller()
        await ctrl.start()
        await ctrl.add_section("Second")
        loads = len(editor.loads)
        assert await ctrl.rename_section("section_1", "Renamed") is True
        assert ctrl.sections[0].section_name == "Renamed"
        assert len(editor.loads) == loads

    @pytest.mark.asyncio
    async def test_move_section(self, make_controller):
        ctrl = make_controller()
        await ctrl.start()
        second = await ctrl.add_section("Second")
        await ctrl.move_section(second, 1)
        assert [s.section_id for s in ctrl.sections] == [second, "section_1"]
        assert [s.order for s in ctrl.sections] == [1, 2]


class TestFormType:
    @pytest.mark.asyncio
    async def test_toggle_to_single_declined(self, make_controller):
        ctrl = make_controller(confirm=False)
        await ctrl.start()
        await ctrl.add_section("Second")
        assert await ctrl.toggle_form_type(FormType.SINGLE) is False
        assert ctrl.form_type is FormType.MULTI_STEP
        assert len(ctrl.sections) == 2

    @pytest.mark.asyncio
    async def test_toggle_to_single_keeps_first(self, make_controller, editor):
        prompts = []

        def confirm(message):
            prompts.append(message)
            return True

        ctrl = make_controller(confirm=confirm)
        await ctrl.start()
        editor.type("first")
        await ctrl.add_section("Second")
        editor.type("second")

        assert await ctrl.toggle_form_type("single") is True
        assert ctrl.form_type is FormType.SINGLE
        assert [s.section_id for s in ctrl.sections] == ["section_1"]
        assert ctrl.active_section_id == "section_1"
        assert label_of(editor.last_loaded) == "first"
        assert prompts == ["Switching to single form will keep only the first section. Continue?"]

    @pytest.mark.asyncio
    async def test_async_confirm_supported(self, make_controller):
        async def confirm(message):
            await asyncio.sleep(0)
            return True

        ctrl = make_controller(confirm=confirm)
        await ctrl.start()
        await ctrl.add_section("Second")
        assert await ctrl.toggle_form_type(FormType.SINGLE) is True

    @pytest.mark.asyncio
    async def test_toggle_to_multi_step(self, make_controller):
        ctrl = make_controller()
        await ctrl.start()
        assert await ctrl.toggle_form_type(FormType.MULTI_STEP) is True
        assert len(ctrl.sections) == 1
        assert await ctrl.toggle_form_type(FormType.MULTI_STEP) is False


class TestDraftAutosave:
    @pytest.mark.asyncio
    async def test_burst_of_edits_writes_once(self, make_controller, editor, storage):
        ctrl = make_controller()
        await ctrl.start()
        for i in range(5):
            ctrl.update_metadata(template_name=f"Name {i}")
        await settle()

        assert storage.write_count == 1
        assert _stored_draft(storage).template_name == "Name 4"

    @pytest.mark.asyncio
    async def test_draft_records_selected_section(self, make_controller, editor, storage):
        ctrl = make_controller()
        await ctrl.start()
        editor.type("one")
        second = await ctrl.add_section("Second")
        await settle()

        record = _stored_draft(storage)
        assert record.form_type is FormType.MULTI_STEP
        assert record.selected_section_id == second
        assert label_of(record.sections[0].content_fragment) == "one"

    @pytest.mark.asyncio
    async def test_flush_on_unload_captures_editor(self, make_controller, editor, storage):
        ctrl = make_controller()
        await ctrl.start()
        editor.type("unsaved")
        assert ctrl.flush_on_unload() is True
        assert label_of(_stored_draft(storage).sections[0].content_fragment) == "unsaved"

    @pytest.mark.asyncio
    async def test_close_flushes_pending_write(self, make_controller, storage):
        ctrl = make_controller()
        await ctrl.start()
        ctrl.update_metadata(template_name="Closing")
        ctrl.close()

        assert ctrl.state is SessionState.CLOSED
        assert _stored_draft(storage).template_name == "Closing"
        writes = storage.write_count
        await settle()
        assert storage.write_count == writes

    @pytest.mark.asyncio
    async def test_periodic_pull(self, make_controller, editor):
        settings = SessionSettings(
            draft_debounce_seconds=TEST_DEBOUNCE_SECONDS,
            push_delay_seconds=0,
            periodic_pull_seconds=0.01,
        )
        ctrl = make_controller(settings_override=settings)
        await ctrl.start()
        editor.type("background")
        await asyncio.sleep(0.1)
        assert label_of(ctrl.active_section.content_fragment) == "background"
        ctrl.close()


class TestClearForm:
    @pytest.mark.asyncio
    async def test_clear_resets_everything(self, make_controller, editor, storage, notifier):
        ctrl = make_controller()
        await ctrl.start()
        ctrl.update_metadata(template_name="Gone")
        editor.type("one")
        await ctrl.add_section("Second")
        await settle()
        assert storage.get_item(DRAFT_KEY) is not None

        assert await ctrl.clear_form() is True
        assert storage.get_item(DRAFT_KEY) is None
        assert ctrl.metadata.template_name == ""
        assert ctrl.form_type is FormType.SINGLE
        assert [s.section_id for s in ctrl.sections] == ["section_1"]
        assert json.loads(editor.last_loaded) == default_form()
        assert "Form cleared successfully" in notifier.messages()

    @pytest.mark.asyncio
    async def test_clear_declined(self, make_controller):
        ctrl = make_controller(confirm=False)
        await ctrl.start()
        ctrl.update_metadata(template_name="Kept")
        assert await ctrl.clear_form() is False
        assert ctrl.metadata.template_name == "Kept"
