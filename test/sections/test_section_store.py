"""Tests for SectionStore ordering and structural edits."""

import json
import random

import pytest

from form_helpers import form_with
from formdraft.exceptions import (
    InvalidSectionNameError,
    LastSectionError,
    SectionNotFoundError,
)
from formdraft.fragments import default_fragment
from formdraft.sections import DEFAULT_SECTION_ID, SectionStore
from formdraft.validation import Section


def _section(section_id, order, name=None, fragment=None):
    return Section(
        section_id=section_id,
        section_name=name or section_id.title(),
        order=order,
        content_fragment=fragment or default_fragment(),
    )


def _orders(store):
    return [s.order for s in store.to_list()]


@pytest.fixture
def store(logger):
    return SectionStore(logger=logger)


class TestDefaults:
    def test_new_store_holds_default_section(self, store):
        assert len(store) == 1
        first = store.first()
        assert first.section_id == DEFAULT_SECTION_ID
        assert first.section_name == "Section 1"
        assert first.order == 1
        assert first.content_fragment == default_fragment()

    def test_get_returns_copy(self, store):
        section = store.get(DEFAULT_SECTION_ID)
        section.section_name = "mutated"
        assert store.get(DEFAULT_SECTION_ID).section_name == "Section 1"

    def test_get_unknown_raises(self, store):
        with pytest.raises(SectionNotFoundError):
            store.get("missing")


class TestAdd:
    def test_add_appends_with_next_order(self, store):
        section_id = store.add("Contact")
        assert store.ids[-1] == section_id
        assert store.get(section_id).order == 2
        assert store.get(section_id).content_fragment == default_fragment()

    def test_add_trims_name(self, store):
        section_id = store.add("  Address  ")
        assert store.get(section_id).section_name == "Address"

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_add_rejects_blank_name(self, store, name):
        with pytest.raises(InvalidSectionNameError):
            store.add(name)
        assert len(store) == 1

    def test_add_generates_unique_ids(self, store):
        ids = {store.add(f"S{i}") for i in range(50)}
        assert len(ids) == 50
        assert all(i.startswith("section_") for i in ids)


class TestRemove:
    def test_remove_renumbers(self, store):
        a = store.add("A")
        store.add("B")
        store.remove(a)
        assert _orders(store) == [1, 2]

    def test_remove_last_section_refused(self, store):
        with pytest.raises(LastSectionError) as exc_info:
            store.remove(DEFAULT_SECTION_ID)
        assert exc_info.value.code == "LAST_SECTION"
        assert len(store) == 1

    def test_remove_unknown_raises(self, store):
        store.add("A")
        with pytest.raises(SectionNotFoundError):
            store.remove("nope")


class TestRenameAndContent:
    def test_rename(self, store):
        assert store.rename(DEFAULT_SECTION_ID, " Intro ") is True
        assert store.first().section_name == "Intro"

    def test_rename_blank_is_noop(self, store):
        assert store.rename(DEFAULT_SECTION_ID, "  ") is False
        assert store.first().section_name == "Section 1"

    def test_set_content(self, store):
        fragment = json.dumps(form_with("x"))
        store.set_content(DEFAULT_SECTION_ID, fragment)
        assert store.first().content_fragment == fragment

    def test_set_content_requires_string(self, store):
        with pytest.raises(TypeError):
            store.set_content(DEFAULT_SECTION_ID, {"version": "1"})


class TestMove:
    def test_move_to_front(self, store):
        store.add("B")
        c = store.add("C")
        store.move(c, 1)
        assert store.ids[0] == c
        assert _orders(store) == [1, 2, 3]

    def test_move_is_clamped(self, store):
        b = store.add("B")
        store.move(DEFAULT_SECTION_ID, 99)
        assert store.ids == [b, DEFAULT_SECTION_ID]
        store.move(DEFAULT_SECTION_ID, -5)
        assert store.ids == [DEFAULT_SECTION_ID, b]


class TestReplace:
    def test_replace_sorts_and_renumbers(self, store):
        store.replace([_section("b", 7), _section("a", 3), _section("c", 10)])
        assert store.ids == ["a", "b", "c"]
        assert _orders(store) == [1, 2, 3]

    def test_replace_empty_restores_default(self, store):
        store.add("extra")
        store.replace([])
        assert store.ids == [DEFAULT_SECTION_ID]

    def test_replace_repairs_undecodable_fragment(self, store):
        store.replace([_section("a", 1, fragment="{corrupt")])
        assert store.first().content_fragment == default_fragment()

    def test_replace_keeps_sections_with_duplicate_ids(self, store):
        first = json.dumps(form_with("first"))
        second = json.dumps(form_with("second"))
        store.replace(
            [
                _section("a", 1, name="First", fragment=first),
                _section("a", 2, name="Second", fragment=second),
            ]
        )

        assert len(store) == 2
        assert len(set(store.ids)) == 2
        assert store.ids[0] == "a"
        kept = store.to_list()
        assert [s.section_name for s in kept] == ["First", "Second"]
        assert [s.content_fragment for s in kept] == [first, second]
        assert _orders(store) == [1, 2]

    def test_reduce_to_single_keeps_first(self, store):
        store.replace([_section("a", 1), _section("b", 2), _section("c", 3)])
        kept = store.reduce_to_single()
        assert kept.section_id == "a"
        assert store.ids == ["a"]
        assert _orders(store) == [1]


def test_random_add_remove_keeps_contiguous_order(logger):
    """Orders stay exactly 1..N under any interleaving of adds and removes."""
    rng = random.Random(1234)
    store = SectionStore(logger=logger)
    for step in range(300):
        if len(store) > 1 and rng.random() < 0.45:
            store.remove(rng.choice(store.ids))
        else:
            store.add(f"S{step}")
        assert _orders(store) == list(range(1, len(store) + 1))
        assert len(set(store.ids)) == len(store)
