"""
Tests for contribution credits.

Verifies:
- credits are stored trimmed and listed oldest first
- blank names and unknown roles are rejected
- CANON works refuse new credits
- credited works cannot be deleted
"""

import pytest

from canora.curation.contributions import ContributionService
from canora.curation.promotion import PromotionEngine
from canora.db.models import ContributionModel
from canora.errors import HasHistory, ImmutableTarget, NotFound, ValidationError


@pytest.fixture
def contributions(store):
    return ContributionService(store)


def promote(store, work, curator, times=1):
    engine = PromotionEngine(store)
    for _ in range(times):
        engine.promote(work.id, "Exceptional craftsmanship on display.", curator)


class TestAddContribution:
    def test_records_credit(self, contributions, make_work):
        work = make_work("Midnight Echoes")

        credit = contributions.add_contribution(
            work.id, "  Mara Lin ", "VOCAL", notes="  lead vocal  ", user_id="user-7"
        )

        assert credit.work_id == work.id
        assert credit.display_name == "Mara Lin"
        assert credit.role == "VOCAL"
        assert credit.notes == "lead vocal"
        assert credit.user_id == "user-7"

    def test_blank_notes_become_none(self, contributions, make_work):
        work = make_work()
        credit = contributions.add_contribution(work.id, "Kai", "BEAT", notes="   ")
        assert credit.notes is None

    def test_accepts_slug(self, contributions, make_work):
        work = make_work("Neon Dreams")
        credit = contributions.add_contribution(work.slug, "Kai", "BEAT")
        assert credit.work_id == work.id

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_display_name_required(self, contributions, make_work, db_session, name):
        work = make_work()

        with pytest.raises(ValidationError) as exc:
            contributions.add_contribution(work.id, name, "LYRIC")

        assert exc.value.message == "Display name is required"
        assert db_session.query(ContributionModel).count() == 0

    @pytest.mark.parametrize("role", ["DRUMS", "", None, "vocal"])
    def test_role_must_be_known(self, contributions, make_work, role):
        work = make_work()

        with pytest.raises(ValidationError) as exc:
            contributions.add_contribution(work.id, "Kai", role)

        assert exc.value.message == "Valid contribution role is required"

    def test_unknown_work(self, contributions):
        with pytest.raises(NotFound):
            contributions.add_contribution("ghost", "Kai", "BEAT")

    def test_plate_still_accepts_credits(self, contributions, store, make_work, curator):
        work = make_work()
        promote(store, work, curator)

        assert contributions.add_contribution(work.id, "Kai", "SOUND").role == "SOUND"

    def test_canon_refuses_credits(
        self, contributions, store, make_work, curator, db_session
    ):
        work = make_work()
        promote(store, work, curator, times=2)

        with pytest.raises(ImmutableTarget) as exc:
            contributions.add_contribution(work.id, "Kai", "SOUND")

        assert exc.value.message == "Cannot modify canonized works"
        assert exc.value.status_code == 403
        assert db_session.query(ContributionModel).count() == 0


class TestListContributions:
    def test_oldest_first(self, contributions, make_work):
        work = make_work()
        first = contributions.add_contribution(work.id, "Mara", "VOCAL")
        second = contributions.add_contribution(work.id, "Kai", "BEAT")

        listed = contributions.list_contributions(work.slug)

        assert [c.id for c in listed] == [first.id, second.id]

    def test_only_the_works_own_credits(self, contributions, make_work):
        a, b = make_work("A"), make_work("B")
        contributions.add_contribution(a.id, "Mara", "VOCAL")

        assert contributions.list_contributions(b.id) == []

    def test_canon_credits_stay_readable(
        self, contributions, store, make_work, curator
    ):
        work = make_work()
        contributions.add_contribution(work.id, "Mara", "VOCAL")
        promote(store, work, curator, times=2)

        assert len(contributions.list_contributions(work.id)) == 1

    def test_unknown_work(self, contributions):
        with pytest.raises(NotFound):
            contributions.list_contributions("ghost")


def test_credited_work_cannot_be_deleted(contributions, works, make_work):
    work = make_work()
    contributions.add_contribution(work.id, "Mara", "VOCAL")

    with pytest.raises(HasHistory) as exc:
        works.delete_work(work.id)

    assert exc.value.details["contributions"] == 1
