"""
Tests for the Work Service.

Verifies:
- new works start in JAM with a readable unique slug
- parent ids become FORK edges written with the work
- editing is refused once a work is CANON
- deletion is refused for works with lineage or promotion history
- listing filters by tier and paginates newest first
"""

import re
import time

import pytest
from ulid import ULID

from canora.curation.primitives import generate_id, slugify
from canora.curation.promotion import PromotionEngine
from canora.db.models import WorkEdgeModel, WorkModel
from canora.errors import HasHistory, ImmutableTarget, NotFound, ValidationError

SLUG_PATTERN = re.compile(r"^[a-z0-9-]+-[a-z0-9]{4}$")


def promote(store, work, curator, times=1):
    engine = PromotionEngine(store)
    for _ in range(times):
        engine.promote(work.id, "Exceptional craftsmanship on display.", curator)


class TestSlugify:
    @pytest.mark.parametrize(
        "title,expected",
        [
            ("Midnight Echoes", "midnight-echoes"),
            ("  Neon   Dreams!! ", "neon-dreams"),
            ("Rock & Roll -- Live", "rock-roll-live"),
            ("Café Lumière", "caf-lumire"),
        ],
    )
    def test_slugify(self, title, expected):
        assert slugify(title) == expected

    def test_base_is_truncated(self):
        assert len(slugify("x" * 200)) == 50


class TestGenerateId:
    def test_ids_are_ulids(self):
        work_id = generate_id()
        assert len(work_id) == 26
        assert str(ULID.from_str(work_id)) == work_id

    def test_ids_sort_by_creation_time(self):
        earlier = generate_id()
        time.sleep(0.002)
        later = generate_id()
        assert earlier < later

    def test_children_list_in_creation_order(self, works, make_work):
        parent = make_work("Parent")
        children = []
        for i in range(3):
            children.append(works.create_work(f"Child {i}", parent_ids=[parent.id]))
            time.sleep(0.002)

        listed = [c["target"]["id"] for c in works.children(parent.id)]

        assert listed == [c.id for c in children]


class TestCreateWork:
    def test_starts_in_jam(self, works):
        work = works.create_work("Midnight Echoes", description="Late night session")

        assert work.tier == "JAM"
        assert work.canon_locked_at is None
        assert work.canon_locked_by_id is None
        assert work.description == "Late night session"
        assert work.slug.startswith("midnight-echoes-")
        assert SLUG_PATTERN.match(work.slug)

    def test_slugs_are_unique(self, works):
        slugs = {works.create_work("Same Title").slug for _ in range(10)}
        assert len(slugs) == 10

    def test_blank_title_is_rejected(self, works, db_session):
        with pytest.raises(ValidationError):
            works.create_work("   ")
        assert db_session.query(WorkModel).count() == 0

    def test_parents_become_fork_edges(self, works, make_work, db_session):
        a, b = make_work("A"), make_work("B")

        child = works.create_work("Child", parent_ids=[a.id, b.id, a.id])

        edges = db_session.query(WorkEdgeModel).all()
        assert sorted((e.source_id, e.target_id) for e in edges) == sorted(
            [(a.id, child.id), (b.id, child.id)]
        )
        assert {e.type for e in edges} == {"FORK"}

    def test_missing_parent_writes_nothing(self, works, make_work, db_session):
        a = make_work("A")

        with pytest.raises(NotFound) as exc:
            works.create_work("Orphan", parent_ids=[a.id, "ghost"])

        assert exc.value.details["missing"] == ["ghost"]
        assert db_session.query(WorkModel).count() == 1
        assert db_session.query(WorkEdgeModel).count() == 0

    def test_publishes_work_created(self, works, make_work, published):
        parent = make_work("Parent")
        published.clear()

        child = works.create_work("Child", parent_ids=[parent.id])

        assert len(published) == 1
        assert published[0].type == "work.created"
        assert published[0].data["work"]["id"] == child.id
        assert published[0].data["parent_ids"] == [parent.id]


class TestGetWork:
    def test_by_id_and_slug(self, works, make_work):
        work = make_work("Neon Dreams")
        assert works.get_work(work.id) is work
        assert works.get_work(work.slug) is work

    def test_unknown(self, works):
        with pytest.raises(NotFound):
            works.get_work("nope")

    def test_parents_and_children(self, works, make_work):
        a = make_work("A")
        b = works.create_work("B", parent_ids=[a.id])

        parents = works.parents(b.id)
        children = works.children(a.id)

        assert [p["source"]["id"] for p in parents] == [a.id]
        assert [c["target"]["id"] for c in children] == [b.id]
        assert parents[0]["type"] == "FORK"


class TestUpdateWork:
    def test_updates_title_and_description(self, works, make_work):
        work = make_work("Draft")

        updated = works.update_work(work.id, title="Final Cut", description="Mastered")

        assert updated.title == "Final Cut"
        assert updated.description == "Mastered"
        # slug is stable across renames
        assert updated.slug == work.slug

    def test_plate_is_still_editable(self, works, store, make_work, curator):
        work = make_work()
        promote(store, work, curator)
        assert works.update_work(work.id, title="Renamed").title == "Renamed"

    def test_canon_is_immutable(self, works, store, make_work, curator, db_session):
        work = make_work("Locked")
        promote(store, work, curator, times=2)

        with pytest.raises(ImmutableTarget):
            works.update_work(work.id, title="Changed")

        db_session.expire_all()
        assert db_session.get(WorkModel, work.id).title == "Locked"

    def test_blank_title_is_rejected(self, works, make_work):
        work = make_work()
        with pytest.raises(ValidationError):
            works.update_work(work.id, title="")

    def test_no_changes_is_a_no_op(self, works, make_work):
        work = make_work("Same")
        assert works.update_work(work.id).title == "Same"


class TestDeleteWork:
    def test_deletes_fresh_work(self, works, make_work, db_session):
        work = make_work()
        works.delete_work(work.id)
        assert db_session.query(WorkModel).count() == 0

    def test_refuses_work_with_edges(self, works, make_work):
        a = make_work()
        works.create_work("Child", parent_ids=[a.id])

        with pytest.raises(HasHistory) as exc:
            works.delete_work(a.id)
        assert exc.value.details["edges"] == 1

    def test_refuses_work_with_promotions(self, works, store, make_work, curator):
        work = make_work()
        promote(store, work, curator)

        with pytest.raises(HasHistory) as exc:
            works.delete_work(work.id)
        assert exc.value.details["promotions"] == 1


class TestListWorks:
    def test_paginates(self, works, make_work):
        for i in range(5):
            make_work(f"Work {i}")

        page = works.list_works(page=2, page_size=2)

        assert page["total"] == 5
        assert page["page"] == 2
        assert page["page_size"] == 2
        assert page["total_pages"] == 3
        assert len(page["data"]) == 2

    def test_pages_do_not_overlap(self, works, make_work):
        for i in range(5):
            make_work(f"Work {i}")

        seen = []
        for page in (1, 2, 3):
            seen += [w["id"] for w in works.list_works(page=page, page_size=2)["data"]]

        assert len(seen) == len(set(seen)) == 5

    def test_filters_by_tier(self, works, store, make_work, curator):
        jam = make_work("Still jamming")
        plate = make_work("On the plate")
        promote(store, plate, curator)

        page = works.list_works(tier="PLATE")

        assert [w["id"] for w in page["data"]] == [plate.id]
        assert jam.id not in [w["id"] for w in page["data"]]

    def test_unknown_tier(self, works):
        with pytest.raises(ValidationError):
            works.list_works(tier="GOLD")

    def test_bad_page(self, works):
        with pytest.raises(ValidationError):
            works.list_works(page=0)
