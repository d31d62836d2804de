from datetime import timedelta

import pytest

from conftest import TODAY
from daybook.config import Settings
from daybook.models import ValidationError
from daybook.store import Store, StoreError
from daybook.tasks import DayView, next_sort_order, start_of_week

YESTERDAY = TODAY - timedelta(days=1)
TOMORROW = TODAY + timedelta(days=1)


@pytest.fixture
def view(store):
    return DayView(store, Settings(), today=lambda: TODAY)


def test_open_today_runs_the_whole_chain(client, view):
    client.seed_task("Leftover", YESTERDAY, priority="low")
    client.seed("routines", title="Stretch", frequency="daily", priority="high", is_active=True)
    client.seed_task("Plan", TODAY, priority="high")

    tasks = view.open(TODAY)

    assert [t.title for t in tasks] == ["Plan", "Stretch", "Leftover"]
    assert view.tasks == tasks
    assert view.is_today


def test_carry_over_runs_once_per_session(client, view):
    client.seed_task("Leftover", YESTERDAY)
    view.open(TODAY)
    late = client.seed_task("Late leftover", YESTERDAY)
    view.open(TODAY)
    assert late["task_date"] == YESTERDAY.isoformat()


def test_browsing_another_date_does_not_carry_over(client, view):
    stale = client.seed_task("Leftover", YESTERDAY - timedelta(days=1))
    tasks = view.open(YESTERDAY)
    assert stale["task_date"] != TODAY.isoformat()
    assert tasks == []
    assert not view.is_today


def test_routines_materialize_for_the_viewed_date(client, view):
    client.seed("routines", title="Stretch", frequency="daily", is_active=True)
    assert [t.title for t in view.open(TOMORROW)] == ["Stretch"]
    assert [t.title for t in view.open(TOMORROW)] == ["Stretch"]


def test_no_signed_in_user_is_a_silent_no_op(client):
    client.user_id = None
    client.seed_task("Someone's", TODAY)
    view = DayView(Store(client), Settings(), today=lambda: TODAY)
    assert view.open(TODAY) == []
    assert client.calls == []


def test_background_failures_do_not_block_the_fetch(client, view, caplog):
    client.seed_task("Plan", TODAY)
    client.fail_on = lambda q: q.op in ("update", "insert") or q.table == "routines"
    client.seed_task("Leftover", YESTERDAY)
    assert [t.title for t in view.open(TODAY)] == ["Plan"]
    assert "Routine materialization failed" in caplog.text


def test_failed_carry_over_is_retried_on_next_open(client, view):
    stale = client.seed_task("Leftover", YESTERDAY)
    client.fail_on = lambda q: q.op == "update"
    view.open(TODAY)
    client.fail_on = None
    view.open(TODAY)
    assert stale["task_date"] == TODAY.isoformat()


def test_fetch_failure_propagates(client, view):
    client.fail_on = lambda q: q.table == "tasks" and q.op == "select"
    with pytest.raises(StoreError):
        view.open(TOMORROW)


def test_stale_result_is_discarded(client, view, monkeypatch):
    client.seed_task("Tomorrow's", TOMORROW)
    client.seed_task("Today's", TODAY)
    view.open(TODAY)
    real_fetch = view._fetch

    def fetch_while_user_navigates(day):
        result = real_fetch(day)
        if day == TOMORROW:
            view._generation += 1
            view.selected_date = TODAY
        return result

    monkeypatch.setattr(view, "_fetch", fetch_while_user_navigates)
    view.open(TOMORROW)
    assert [t.title for t in view.tasks] == ["Today's"]


def test_create_task_goes_after_its_priority_band(client, view):
    client.seed_task("H1", TODAY, priority="high", sort_order=0)
    client.seed_task("M1", TODAY, priority="medium", sort_order=3)
    view.open(TODAY)

    high = view.create_task("H2", priority="high")
    low = view.create_task("L1", priority="low")

    assert high.sort_order == 1
    assert low.sort_order == 4
    assert [t.title for t in view.tasks] == ["H1", "H2", "M1", "L1"]


def test_create_task_for_another_date_uses_that_dates_positions(client, view):
    client.seed_task("Later", TOMORROW, priority="medium", sort_order=7)
    view.open(TODAY)
    task = view.create_task("Also later", task_date=TOMORROW)
    assert task.sort_order == 8
    assert task not in view.tasks


def test_create_task_rejects_bad_input_before_writing(client, view):
    view.open(TODAY)
    client.calls.clear()
    with pytest.raises(ValidationError):
        view.create_task("   ")
    with pytest.raises(ValidationError):
        view.create_task("ok", priority="urgent")
    assert client.calls == []


def test_toggle_complete_moves_task_to_the_bottom(client, view):
    high = client.seed_task("High", TODAY, priority="high")
    client.seed_task("Low", TODAY, priority="low")
    view.open(TODAY)

    toggled = view.toggle_complete(high["id"])

    assert toggled.is_completed
    assert [t.title for t in view.tasks] == ["Low", "High"]
    assert view.toggle_complete("missing") is None


def test_move_to_next_day_drops_it_from_the_view(client, view):
    row = client.seed_task("Later", TODAY)
    view.open(TODAY)
    moved = view.move_to_next_day(row["id"])
    assert moved.task_date == TOMORROW
    assert view.tasks == []


def test_update_task(client, view):
    row = client.seed_task("Draft", TODAY)
    view.open(TODAY)
    updated = view.update_task(row["id"], title="  Final  ", priority="high", memo="send")
    assert (updated.title, updated.priority, updated.memo) == ("Final", "high", "send")
    with pytest.raises(ValidationError):
        view.update_task(row["id"], user_id="someone-else")
    with pytest.raises(StoreError):
        view.update_task("missing", title="x")


def test_delete_task(client, view):
    row = client.seed_task("Gone", TODAY)
    view.open(TODAY)
    assert view.delete_task(row["id"]) is True
    assert view.tasks == []
    assert client.rows("tasks") == []


def test_reorder_keeps_priority_bands(client, view):
    a = client.seed_task("A", TODAY, priority="medium", sort_order=0)
    b = client.seed_task("B", TODAY, priority="medium", sort_order=1)
    h = client.seed_task("H", TODAY, priority="high", sort_order=2)
    view.open(TODAY)
    by_id = {t.id: t for t in view.tasks}

    result = view.reorder([by_id[b["id"]], by_id[a["id"]], by_id[h["id"]]])

    assert [t.title for t in result] == ["H", "B", "A"]
    assert (b["sort_order"], a["sort_order"], h["sort_order"]) == (0, 1, 2)


def test_reorder_survives_reopening_the_day(client, view):
    a = client.seed_task("A", TODAY, sort_order=0)
    b = client.seed_task("B", TODAY, sort_order=1)
    view.open(TODAY)
    by_id = {t.id: t for t in view.tasks}

    assert [t.title for t in view.reorder([by_id[b["id"]], by_id[a["id"]]])] == ["B", "A"]
    assert [t.title for t in view.open(TODAY)] == ["B", "A"]
    assert [t.title for t in DayView(view.store, Settings(), today=lambda: TODAY).open(TODAY)] == ["B", "A"]


def test_stale_refetch_is_discarded(client, view, monkeypatch):
    client.seed_task("Today's", TODAY)
    client.seed_task("Tomorrow's", TOMORROW)
    view.open(TODAY)
    real_fetch = view._fetch

    def fetch_while_user_navigates(day):
        result = real_fetch(day)
        if day == TODAY:
            monkeypatch.setattr(view, "_fetch", real_fetch)
            view.open(TOMORROW)
        return result

    monkeypatch.setattr(view, "_fetch", fetch_while_user_navigates)
    view.refetch()
    assert view.selected_date == TOMORROW
    assert [t.title for t in view.tasks] == ["Tomorrow's"]


def test_tasks_for_week(client, view):
    monday = start_of_week(TODAY + timedelta(days=3))
    assert monday == TODAY
    client.seed_task("Mon", TODAY)
    client.seed_task("Sun", TODAY + timedelta(days=6), priority="low")
    client.seed_task("Sun high", TODAY + timedelta(days=6), priority="high")
    client.seed_task("Next Mon", TODAY + timedelta(days=7))

    week = view.tasks_for_week(monday)

    assert list(week) == [TODAY + timedelta(days=n) for n in range(7)]
    assert [t.title for t in week[TODAY]] == ["Mon"]
    assert [t.title for t in week[TODAY + timedelta(days=6)]] == ["Sun high", "Sun"]
    assert week[TODAY + timedelta(days=1)] == []


def test_next_sort_order_empty_day():
    assert next_sort_order([], "high") == 0
