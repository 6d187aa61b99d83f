import pytest
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

from study_scheduler.scheduling import ValidationError, resolve_work_items
from study_scheduler.scheduling.resolver import dedupe_selection


def sub(name, hours, order=0, active=True, difficulty="beginner"):
    return SimpleNamespace(
        id=uuid4(),
        name=name,
        hours_required=Decimal(str(hours)),
        order_index=order,
        is_active=active,
        difficulty_level=difficulty,
    )


def tech(rank, subtopics, active=True):
    return SimpleNamespace(id=uuid4(), complexity_rank=rank, is_active=active, subtopics=subtopics)


@pytest.mark.unit
class TestResolveWorkItems:

    def test_orders_by_complexity_rank(self):
        html = tech(1, [sub("Tags", 2)])
        css = tech(2, [sub("Selectors", 3)])
        js = tech(3, [sub("Variables", 1)])

        items = resolve_work_items([js.id, html.id, css.id], [html, css, js])

        assert [i.technology_id for i in items] == [html.id, css.id, js.id]

    def test_selection_order_breaks_rank_ties(self):
        python = tech(3, [sub("Syntax", 1)])
        js = tech(3, [sub("Variables", 1)])

        items = resolve_work_items([python.id, js.id], [js, python])

        assert [i.technology_id for i in items] == [python.id, js.id]

    def test_subtopics_by_order_then_name(self):
        later = sub("Zeta", 1, order=2)
        b = sub("Beta", 1, order=1)
        a = sub("Alpha", 1, order=1)
        t = tech(1, [later, b, a])

        items = resolve_work_items([t.id], [t])

        assert [i.subtopic_id for i in items] == [a.id, b.id, later.id]

    def test_skips_inactive_rows_and_unselected(self):
        kept = sub("Kept", 1)
        t = tech(1, [kept, sub("Hidden", 1, active=False)])
        retired = tech(2, [sub("Gone", 1)], active=False)
        unselected = tech(0, [sub("Other", 1)])

        items = resolve_work_items([t.id, retired.id, uuid4()], [t, retired, unselected])

        assert [i.subtopic_id for i in items] == [kept.id]

    def test_duplicates_collapse(self):
        t = tech(1, [sub("Only", 2)])
        items = resolve_work_items([t.id, str(t.id), t.id], [t])
        assert len(items) == 1
        assert items[0].hours_required == Decimal("2.00")

    def test_empty_selection(self):
        assert resolve_work_items([], [tech(1, [sub("x", 1)])]) == []

    def test_carries_difficulty(self):
        t = tech(1, [sub("Hooks", 1, difficulty="advanced")])
        assert resolve_work_items([t.id], [t])[0].difficulty == "advanced"

    def test_non_positive_hours_rejected(self):
        t = tech(1, [sub("Broken", 0)])
        with pytest.raises(ValidationError):
            resolve_work_items([t.id], [t])


@pytest.mark.unit
class TestDedupeSelection:

    def test_first_occurrence_wins(self):
        a, b = uuid4(), uuid4()
        assert dedupe_selection([b, a, str(b)]) == [b, a]

    def test_invalid_id(self):
        with pytest.raises(ValidationError):
            dedupe_selection(["not-a-uuid"])
