"""
Tests for curated lists.

Verifies:
- lists are created by and owned by a curator
- only the owner may rename, delete or change items
- items are appended in order and a work appears once per list
- the index paginates newest first with an item preview
"""

import time

import pytest

from canora.curation.lists import PREVIEW_SIZE, CuratedListService
from canora.curation.promotion import PromotionEngine
from canora.curation.schemas import Curator
from canora.db.models import CuratedListItemModel, CuratedListModel
from canora.errors import (
    AlreadyInList,
    Forbidden,
    HasHistory,
    NotFound,
    ValidationError,
)

STRANGER = Curator(id="curator-2", display_name="Someone Else")


@pytest.fixture
def lists(store):
    return CuratedListService(store)


@pytest.fixture
def summer(lists, curator):
    return lists.create_list("Summer Anthems", "  Sunny picks ", curator)


class TestCreateList:
    def test_owned_by_curator(self, summer, curator):
        assert summer.title == "Summer Anthems"
        assert summer.description == "Sunny picks"
        assert summer.curator_id == curator.id

    @pytest.mark.parametrize("title", ["", "  ", None])
    def test_title_required(self, lists, curator, db_session, title):
        with pytest.raises(ValidationError) as exc:
            lists.create_list(title, None, curator)

        assert exc.value.message == "Title is required"
        assert db_session.query(CuratedListModel).count() == 0

    def test_blank_description_is_none(self, lists, curator):
        assert lists.create_list("Quiet", "   ", curator).description is None


class TestItems:
    def test_appended_in_order(self, lists, summer, curator, make_work):
        a, b, c = make_work("A"), make_work("B"), make_work("C")
        for work in (b, a, c):
            lists.add_item(summer.id, work.id, curator)

        detail = lists.get_list(summer.id)

        assert [i["order_index"] for i in detail["items"]] == [0, 1, 2]
        assert [i["work"]["id"] for i in detail["items"]] == [b.id, a.id, c.id]
        assert detail["items"][0]["work"]["title"] == "B"

    def test_order_continues_after_removal(self, lists, summer, curator, make_work):
        a, b, c = make_work("A"), make_work("B"), make_work("C")
        lists.add_item(summer.id, a.id, curator)
        lists.add_item(summer.id, b.id, curator)
        lists.remove_item(summer.id, b.id, curator)

        item = lists.add_item(summer.id, c.id, curator)

        assert item.order_index == 2

    def test_work_appears_once(self, lists, summer, curator, make_work, db_session):
        work = make_work()
        lists.add_item(summer.id, work.id, curator)

        with pytest.raises(AlreadyInList) as exc:
            lists.add_item(summer.id, work.id, curator)

        assert exc.value.message == "Work is already in this list"
        assert db_session.query(CuratedListItemModel).count() == 1

    def test_concurrent_duplicate_is_translated(
        self, lists, store, summer, curator, make_work, monkeypatch
    ):
        work = make_work()
        lists.add_item(summer.id, work.id, curator)
        # The other request inserted after this one checked
        monkeypatch.setattr(store, "find_list_item", lambda list_id, work_id: None)

        with pytest.raises(AlreadyInList):
            lists.add_item(summer.id, work.id, curator)

    def test_same_work_in_two_lists(self, lists, summer, curator, make_work):
        other = lists.create_list("Winter", None, curator)
        work = make_work()

        lists.add_item(summer.id, work.id, curator)
        lists.add_item(other.id, work.id, curator)

        assert lists.get_list(other.id)["items"][0]["work"]["id"] == work.id

    def test_canon_works_can_be_listed(self, lists, summer, curator, make_work, store):
        work = make_work()
        engine = PromotionEngine(store)
        engine.promote(work.id, "Exceptional craftsmanship on display.", curator)
        engine.promote(work.id, "Confirmed after community review.", curator)

        assert lists.add_item(summer.id, work.id, curator).work_id == work.id

    @pytest.mark.parametrize("work_id", ["", None])
    def test_work_id_required(self, lists, summer, curator, work_id):
        with pytest.raises(ValidationError):
            lists.add_item(summer.id, work_id, curator)

    def test_unknown_work(self, lists, summer, curator):
        with pytest.raises(NotFound) as exc:
            lists.add_item(summer.id, "ghost", curator)
        assert exc.value.message == "Work not found"

    def test_unknown_list(self, lists, curator, make_work):
        with pytest.raises(NotFound) as exc:
            lists.add_item("ghost", make_work().id, curator)
        assert exc.value.message == "List not found"

    def test_stranger_cannot_add(self, lists, summer, make_work):
        with pytest.raises(Forbidden) as exc:
            lists.add_item(summer.id, make_work().id, STRANGER)
        assert exc.value.message == "Not authorized to modify this list"

    def test_stranger_cannot_remove(self, lists, summer, curator, make_work):
        work = make_work()
        lists.add_item(summer.id, work.id, curator)

        with pytest.raises(Forbidden):
            lists.remove_item(summer.id, work.id, STRANGER)

    def test_remove_missing_item(self, lists, summer, curator, make_work):
        with pytest.raises(NotFound):
            lists.remove_item(summer.id, make_work().id, curator)

    def test_listed_work_cannot_be_deleted(self, lists, summer, curator, works, make_work):
        work = make_work()
        lists.add_item(summer.id, work.id, curator)

        with pytest.raises(HasHistory) as exc:
            works.delete_work(work.id)
        assert exc.value.details["list_items"] == 1


class TestUpdateAndDelete:
    def test_owner_renames(self, lists, summer, curator):
        updated = lists.update_list(summer.id, curator, title="  Summer 2026 ")
        assert updated.title == "Summer 2026"
        assert updated.description == "Sunny picks"

    def test_stranger_cannot_rename(self, lists, summer):
        with pytest.raises(Forbidden) as exc:
            lists.update_list(summer.id, STRANGER, title="Mine now")
        assert exc.value.message == "Not authorized to modify this list"

    def test_blank_title_rejected(self, lists, summer, curator):
        with pytest.raises(ValidationError):
            lists.update_list(summer.id, curator, title=" ")

    def test_delete_removes_items(self, lists, summer, curator, make_work, db_session):
        lists.add_item(summer.id, make_work().id, curator)

        lists.delete_list(summer.id, curator)

        assert db_session.query(CuratedListModel).count() == 0
        assert db_session.query(CuratedListItemModel).count() == 0

    def test_stranger_cannot_delete(self, lists, summer):
        with pytest.raises(Forbidden) as exc:
            lists.delete_list(summer.id, STRANGER)
        assert exc.value.message == "Not authorized to delete this list"

    def test_unknown_list(self, lists, curator):
        with pytest.raises(NotFound):
            lists.get_list("ghost")
        with pytest.raises(NotFound):
            lists.delete_list("ghost", curator)


class TestListLists:
    def test_newest_first_with_preview(self, lists, curator, make_work):
        older = lists.create_list("Older", None, curator)
        time.sleep(0.002)
        newer = lists.create_list("Newer", None, curator)
        for _ in range(PREVIEW_SIZE + 2):
            lists.add_item(newer.id, make_work().id, curator)

        page = lists.list_lists()

        assert [entry["id"] for entry in page["data"]] == [newer.id, older.id]
        assert len(page["data"][0]["items"]) == PREVIEW_SIZE
        assert page["data"][0]["item_count"] == PREVIEW_SIZE + 2
        assert page["data"][1]["items"] == []
        assert page["total"] == 2

    def test_paginates(self, lists, curator):
        for i in range(5):
            lists.create_list(f"List {i}", None, curator)

        page = lists.list_lists(page=3, page_size=2)

        assert page["total_pages"] == 3
        assert page["page"] == 3
        assert len(page["data"]) == 1

    def test_bad_page(self, lists):
        with pytest.raises(ValidationError):
            lists.list_lists(page=0)
