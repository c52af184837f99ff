"""Tests for selection coordination."""

import pytest

from pyqt_searchtable.services.selection_service import Selection, SelectionMode, SelectionService


def _rows(*ids):
    return [{"id": i, "name": f"row {i}"} for i in ids]


@pytest.fixture
def changes():
    return []


@pytest.fixture
def selection(qapp, changes):
    service = SelectionService(row_key="id", mode=SelectionMode.CHECKBOX)
    service.selection_changed.connect(changes.append)
    return service


def _assert_paired(service):
    snapshot = service.snapshot()
    assert len(snapshot.keys) == len(snapshot.records)
    assert all(key in snapshot.records for key in snapshot.keys)


def test_add_unions_and_latest_record_wins(selection, changes):
    selection.add(_rows(1, 2))
    selection.add([{"id": 2, "name": "renamed"}, {"id": 3, "name": "row 3"}])

    assert selection.keys == [1, 2, 3]
    assert selection.records[2]["name"] == "renamed"
    _assert_paired(selection)


def test_one_notification_per_call(selection, changes):
    """Each mutating call notifies exactly once, with the finished state."""
    selection.add(_rows(1, 2, 3))
    assert len(changes) == 1
    assert changes[0].keys == (1, 2, 3)

    selection.remove([1, 2])
    assert len(changes) == 2
    assert changes[1].keys == (3,)

    selection.replace(_rows(7, 8))
    selection.clear()
    assert len(changes) == 4
    assert changes[-1] == Selection()


def test_remove_ignores_unknown_keys(selection):
    selection.add(_rows(1, 2))
    selection.remove([2, 99])
    assert selection.keys == [1]
    _assert_paired(selection)


def test_replace_overwrites(selection):
    selection.add(_rows(1, 2))
    selection.replace(_rows(5))
    assert selection.keys == [5]


def test_radio_mode_is_exclusive(qapp):
    """In single-select mode at most one row is ever selected."""
    service = SelectionService(row_key="id", mode="radio")

    service.add(_rows(1))
    assert service.keys == [1]
    service.add(_rows(2, 3))
    assert service.keys == [3]
    assert len(service) <= 1

    service.replace(_rows(4, 5))
    assert service.keys == [5]


def test_switching_to_radio_keeps_last(selection, changes):
    selection.add(_rows(1, 2, 3))
    selection.set_mode(SelectionMode.RADIO)
    assert selection.keys == [3]
    assert len(changes) == 2


def test_records_without_key_are_skipped(selection):
    selection.add([{"name": "no id"}, {"id": 4}])
    assert selection.keys == [4]
    _assert_paired(selection)


def test_callable_row_key_and_on_change(qapp):
    seen = []
    service = SelectionService(row_key=lambda r: r["code"], on_change=seen.append)
    service.add([{"code": "A"}, {"code": "B"}])

    assert service.keys == ["A", "B"]
    assert len(seen) == 1
    assert seen[0].rows == [{"code": "A"}, {"code": "B"}]


def test_snapshot_is_detached(selection):
    selection.add(_rows(1))
    snapshot = selection.snapshot()
    selection.clear()
    assert snapshot.keys == (1,)
    assert 1 in snapshot
