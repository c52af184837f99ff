"""Tests for SearchTableManager orchestration, driven through fake surfaces."""

import threading
import time

import pytest

from pyqt_searchtable.core.background_task import InlineTaskExecutor, TaskExecutor, ThreadedTaskExecutor
from pyqt_searchtable.forms.field_types import FieldDescriptor, SortItem
from pyqt_searchtable.forms.search_table_manager import SearchTableManager
from pyqt_searchtable.protocols.surface_protocols import DialogFormSurface, SearchPanelSurface, TableSurface
from pyqt_searchtable.services.query_service import LoadingState


FIELDS = [
    FieldDescriptor(key="name", title="Name", search=True, dialog={"required": True}),
    FieldDescriptor(key="org", title="Org", search={"position": "more"}, default_value="hq"),
    FieldDescriptor(key="status", title="Status", default_filter_value="open", dialog=True),
    FieldDescriptor(key="created", title="Created", default_sorts_value="descend"),
]


class FakePanel(SearchPanelSurface):
    def __init__(self, values=None):
        self.fields = []
        self.values = dict(values or {})
        self.confirm = None
        self.relayouts = 0

    def set_fields(self, fields):
        self.fields = list(fields)

    def get_fields_value(self):
        return dict(self.values)

    def set_fields_value(self, values):
        self.values.update(values)

    def reset_fields(self):
        self.values = {}

    def connect_confirm(self, callback):
        self.confirm = callback

    def relayout(self):
        self.relayouts += 1


class FakeTable(TableSurface):
    def __init__(self):
        self.schema = None
        self.rows = []
        self.total = 0
        self.selected_keys = []
        self.states = []
        self.pages = []
        self.sorts = []
        self.on_selection = self.on_sort = self.on_page = None

    def set_columns(self, schema):
        self.schema = schema

    def set_rows(self, rows, total):
        self.rows = list(rows)
        self.total = total

    def get_rows(self):
        return list(self.rows)

    def set_loading_state(self, state):
        self.states.append(state)

    def set_selected_keys(self, keys):
        self.selected_keys = list(keys)

    def set_pagination(self, current, page_size):
        self.pages.append((current, page_size))

    def set_sorts(self, sorts):
        self.sorts.append(list(sorts))

    def connect_selection_changed(self, callback):
        self.on_selection = callback

    def connect_sort_changed(self, callback):
        self.on_sort = callback

    def connect_page_changed(self, callback):
        self.on_page = callback


class FakeDialog(DialogFormSurface):
    def __init__(self):
        self.fields = []
        self.opened = None
        self.closed = 0
        self.on_closed = []

    def set_fields(self, fields):
        self.fields = list(fields)

    def open_form(self, values, mode):
        self.opened = (dict(values), mode)

    def close_form(self):
        self.closed += 1
        for callback in self.on_closed:
            callback()

    def connect_closed(self, callback):
        self.on_closed.append(callback)

    def get_fields_value(self):
        return dict(self.opened[0]) if self.opened else {}


class DeferredExecutor(TaskExecutor):
    """Runs the loader at submit time but delivers results when the test says so."""

    def __init__(self):
        self.pending = []

    def submit(self, target, on_success, on_error):
        self.pending.append((target(), on_success))

    def resolve(self, index):
        result, on_success = self.pending[index]
        on_success(result)


class RecordingLoader:
    """Serves a fixed row set and records every LoadParams it receives."""

    def __init__(self, rows=None, total=None):
        self.rows = rows if rows is not None else [{"id": 1}, {"id": 2}]
        self.total = total
        self.calls = []

    def __call__(self, params):
        self.calls.append(params)
        return {"rows": list(self.rows), "total": self.total if self.total is not None else len(self.rows)}


@pytest.fixture
def loader():
    return RecordingLoader()


@pytest.fixture
def manager(qapp, loader):
    return SearchTableManager(fields=FIELDS, loader=loader, executor=InlineTaskExecutor())


@pytest.fixture
def table():
    return FakeTable()


@pytest.fixture
def mounted(manager, table):
    manager.attach_table(table)
    return manager


# ==================== MOUNT ====================

def test_handle_is_noop_before_table_attached(manager, loader):
    """Before mount every handle method leaves state untouched."""
    before = (dict(manager.filters), list(manager.sorts), manager.pagination.current)

    manager.refresh()
    manager.reset()
    manager.set_filters_value({"status": "closed"})
    manager.set_sorts_value([{"key": "name", "order": "ascend"}])
    manager.set_pagination_value(current=5)
    manager.add_selection([{"id": 9}])
    manager.add_row({"id": 3})
    manager.open_dialog()

    assert loader.calls == []
    assert (dict(manager.filters), list(manager.sorts), manager.pagination.current) == before
    assert len(manager.get_selection()) == 0
    assert manager.get_table_data() == []
    assert manager.get_edit_table_rows() == []
    assert manager.get_api_params() is None
    assert manager.dialog_visible is False


def test_initial_state_is_derived_from_fields(manager):
    assert manager.filters == {"status": "open"}
    assert manager.sorts == [SortItem("created", "descend")]
    assert manager.search_params == {"org": "hq"}
    assert [f.key for f in manager.schemas.search.primary] == ["name"]
    assert [f.key for f in manager.schemas.search.more] == ["org"]


def test_autoload_issues_first_query(mounted, loader, table):
    assert len(loader.calls) == 1
    params = loader.calls[0]
    assert params.filters == {"status": "open"}
    assert params.sorts == [SortItem("created", "descend")]
    assert params.search == {"org": "hq"}
    assert table.rows == [{"id": 1}, {"id": 2}]
    assert table.total == 2
    assert table.states == [LoadingState.LOADING, LoadingState.LOADED]


def test_autoload_disabled(qapp, loader, table):
    manager = SearchTableManager(fields=FIELDS, loader=loader, executor=InlineTaskExecutor(), autoload=False)
    manager.attach_table(table)
    assert loader.calls == []
    manager.refresh()
    assert len(loader.calls) == 1


# ==================== QUERY ====================

def test_reset_merges_panels_with_overflow_winning(manager, table, loader):
    primary = FakePanel({"name": "ada", "org": "from-primary"})
    more = FakePanel({"org": "from-more"})
    manager.attach_search_panel(primary)
    manager.attach_search_panel(more, more=True)
    manager.attach_table(table)

    assert loader.calls[-1].search == {"name": "ada", "org": "from-more"}
    assert [f.key for f in primary.fields] == ["name"]
    assert [f.key for f in more.fields] == ["org"]


def test_reset_goes_to_first_page(mounted, loader, table):
    mounted.set_pagination_value(current=3)
    assert loader.calls[-1].pagination.current == 3

    mounted.reset()
    assert loader.calls[-1].pagination.current == 1
    assert table.pages[-1] == (1, 10)


def test_panel_confirm_triggers_reset(manager, table, loader):
    panel = FakePanel({"name": "x"})
    manager.attach_search_panel(panel)
    manager.attach_table(table)
    manager.set_pagination_value(current=4)

    panel.values = {"name": "y"}
    panel.confirm()

    assert loader.calls[-1].search["name"] == "y"
    assert loader.calls[-1].pagination.current == 1


def test_extend_search_params_and_before_search(qapp, loader, table):
    def before_search(params):
        params.search["tenant"] = "acme"
        return params

    manager = SearchTableManager(
        fields=FIELDS, loader=loader, executor=InlineTaskExecutor(),
        extend_search_params=lambda: {"scope": "all"}, before_search=before_search,
    )
    manager.attach_table(table)

    assert loader.calls[-1].search == {"org": "hq", "scope": "all", "tenant": "acme"}


def test_filter_mutations_issue_exactly_one_query(mounted, loader):
    issued = len(loader.calls)

    mounted.set_filters_value({"status": "closed", "kind": "a"})
    assert len(loader.calls) == issued + 1
    assert loader.calls[-1].filters == {"status": "closed", "kind": "a"}

    mounted.set_filters_value({"kind": None})
    assert loader.calls[-1].filters == {"status": "closed"}

    mounted.clear_filters(["status"])
    assert loader.calls[-1].filters == {}
    assert len(loader.calls) == issued + 3


def test_clear_filters_without_keys_clears_all(mounted, loader):
    mounted.set_filters_value({"a": 1, "b": 2})
    mounted.clear_filters()
    assert mounted.filters == {}
    assert loader.calls[-1].filters == {}


def test_sort_mutations(mounted, loader):
    issued = len(loader.calls)
    mounted.set_sorts_value([{"key": "name", "order": "ascend"}, {"key": "bad", "order": "up"}, {"oops": 1}])
    assert mounted.sorts == [SortItem("name", "ascend")]
    assert len(loader.calls) == issued + 1

    mounted.set_sorts_value([SortItem("name", "ascend"), SortItem("created", "descend")])
    mounted.clear_sorts(["name"])
    assert loader.calls[-1].sorts == [SortItem("created", "descend")]
    mounted.clear_sorts()
    assert loader.calls[-1].sorts == []


def test_table_sort_and_page_interaction(mounted, loader, table):
    table.on_sort([SortItem("name", "descend")])
    assert loader.calls[-1].sorts == [SortItem("name", "descend")]

    table.on_page(2, 25)
    assert loader.calls[-1].pagination.current == 2
    assert loader.calls[-1].pagination.page_size == 25


def test_get_api_params_reflects_state(mounted):
    mounted.set_filters_value({"status": "closed"})
    params = mounted.get_api_params()
    assert params.filters == {"status": "closed"}
    assert params.search == {"org": "hq"}


def test_stale_reset_is_discarded(qapp, table):
    """Two resets in quick succession: only the second result reaches the table."""
    executor = DeferredExecutor()
    batches = iter([[{"id": "first"}], [{"id": "second"}]])
    manager = SearchTableManager(
        fields=FIELDS, loader=lambda params: {"rows": next(batches), "total": 1},
        executor=executor, autoload=False,
    )
    manager.attach_table(table)

    manager.reset()
    manager.reset()
    executor.resolve(1)
    executor.resolve(0)

    assert table.rows == [{"id": "second"}]


def test_load_failure_is_reported(qapp, table):
    failures = []

    def loader(params):
        raise RuntimeError("down")

    manager = SearchTableManager(fields=FIELDS, loader=loader, executor=InlineTaskExecutor())
    manager.load_failed.connect(failures.append)
    manager.attach_table(table)

    assert table.states[-1] is LoadingState.ERROR
    assert len(failures) == 1


# ==================== SELECTION ====================

def test_selection_survives_page_change(mounted, table, loader):
    mounted.add_selection([{"id": 1}])
    loader.rows = [{"id": 3}, {"id": 4}]
    mounted.set_pagination_value(current=2)

    assert mounted.get_selection().keys == (1,)
    assert table.selected_keys == [1]


def test_table_selection_keeps_off_page_rows(mounted, table):
    mounted.add_selection([{"id": 99, "name": "elsewhere"}])

    table.on_selection([{"id": 2}])
    assert mounted.get_selection().keys == (99, 2)

    table.on_selection([])
    assert mounted.get_selection().keys == (99,)


def test_radio_table_selection_replaces(qapp, loader, table):
    manager = SearchTableManager(fields=FIELDS, loader=loader, executor=InlineTaskExecutor(), selection_mode="radio")
    manager.attach_table(table)
    manager.add_selection([{"id": 99}])

    table.on_selection([{"id": 1}])
    assert manager.get_selection().keys == (1,)


def test_selection_change_notifies_once(mounted):
    seen = []
    mounted.selection_changed.connect(seen.append)
    mounted.set_selection([{"id": 1}, {"id": 2}])
    assert len(seen) == 1
    mounted.remove_selection([1])
    mounted.clear_selection()
    assert len(seen) == 3
    assert len(seen[-1]) == 0


def test_on_selection_change_callback(qapp, loader, table):
    seen = []
    manager = SearchTableManager(fields=FIELDS, loader=loader, executor=InlineTaskExecutor(),
                                 on_selection_change=seen.append)
    manager.attach_table(table)
    manager.add_selection([{"id": 2}])
    assert seen[-1].keys == (2,)


# ==================== ROWS ====================

def test_add_row_positions(mounted, table):
    mounted.add_row({"id": 0}, position="before")
    mounted.add_row({"id": 3})
    assert [r["id"] for r in mounted.get_table_data()] == [0, 1, 2, 3]
    assert table.total == 4


def test_delete_row_also_deselects(mounted, table):
    mounted.add_selection([{"id": 2}])
    mounted.delete_row_by_key(2)

    assert [r["id"] for r in table.rows] == [1]
    assert 2 not in mounted.get_selection()
    assert table.selected_keys == []


def test_set_table_data_bypasses_loader(mounted, loader, table):
    issued = len(loader.calls)
    mounted.set_table_data([{"id": 7}])
    assert table.rows == [{"id": 7}]
    assert len(loader.calls) == issued


def test_edit_rows_accumulate(mounted):
    mounted.add_edit_table_rows([{"id": 1}])
    mounted.add_edit_table_rows([{"id": 2}])
    assert mounted.get_edit_table_rows() == [{"id": 1}, {"id": 2}]


# ==================== FIELDS / LOCALE ====================

def test_set_fields_rederives_schemas_and_keeps_state(manager, table):
    panel = FakePanel()
    manager.attach_search_panel(panel)
    manager.attach_table(table)
    manager.set_filters_value({"status": "closed"})
    emitted = []
    manager.schemas_changed.connect(emitted.append)

    manager.set_fields(FIELDS + [FieldDescriptor(key="extra", title="Extra", search=True)])

    assert [f.key for f in panel.fields] == ["name", "extra"]
    assert [f.key for f in table.schema.fields][-1] == "extra"
    assert manager.filters == {"status": "closed"}
    assert len(emitted) == 1
    assert panel.relayouts == 1


def test_translator_change_keeps_partitioning(manager, table):
    manager.attach_table(table)
    before = manager.schemas

    manager.set_translator(str.upper)

    assert [f.title for f in table.schema.fields] == ["NAME", "ORG", "STATUS", "CREATED"]
    assert [f.key for f in manager.schemas.search.primary] == [f.key for f in before.search.primary]
    assert [f.key for f in manager.schemas.search.more] == [f.key for f in before.search.more]


def test_do_layout_with_unchanged_fields_is_quiet(mounted):
    emitted = []
    mounted.schemas_changed.connect(emitted.append)
    mounted.do_layout()
    assert emitted == []


# ==================== DIALOG ====================

def test_dialog_open_close(mounted):
    dialog = FakeDialog()
    mounted.attach_dialog(dialog)
    visibility = []
    mounted.dialog_visibility_changed.connect(visibility.append)

    assert [f.key for f in dialog.fields] == ["name", "status"]

    mounted.open_dialog()
    assert dialog.opened == ({}, "create")
    mounted.close_dialog()
    mounted.open_dialog({"id": 1, "name": "ada"})
    assert dialog.opened == ({"id": 1, "name": "ada"}, "update")

    assert dialog.closed == 1
    assert visibility == [True, False, True]
    assert mounted.dialog_visible


def test_raw_refs(mounted, table):
    assert mounted.get_table_ref() is table
    assert mounted.get_search_ref() is None
    mounted.detach_table()
    assert mounted.get_table_ref() is None


def test_dialog_closed_by_user_updates_visibility(mounted):
    """Cancel on the real dialog reports back, so the next open notifies again."""
    from pyqt_searchtable.widgets import FieldDialogForm

    dialog = FieldDialogForm()
    mounted.attach_dialog(dialog)
    visibility = []
    mounted.dialog_visibility_changed.connect(visibility.append)

    mounted.open_dialog()
    dialog.reject()

    assert not dialog.isVisible()
    assert mounted.dialog_visible is False
    assert visibility == [True, False]

    mounted.open_dialog()
    assert visibility == [True, False, True]
    dialog.close_form()


# ==================== COLUMN CONFIG ====================

def test_column_config_hides_and_reorders(mounted, table, loader):
    issued = len(loader.calls)
    mounted.set_column_config(visible_keys=["created", "name"], order=["created"])

    assert [f.key for f in table.schema.fields] == ["created", "name", "org", "status"]
    assert [f.key for f in table.schema.visible] == ["created", "name"]
    assert len(loader.calls) == issued
    assert mounted.filters == {"status": "open"}


def test_column_config_survives_rederivation(mounted, table):
    mounted.set_column_config(visible_keys=["name"])

    mounted.do_layout()
    mounted.set_translator(str.upper)
    mounted.set_fields(FIELDS + [FieldDescriptor(key="extra", title="Extra")])

    assert [f.key for f in table.schema.visible] == ["name"]
    assert [f.title for f in table.schema.visible] == ["NAME"]


def test_column_order_only_keeps_declared_visibility(qapp, loader, table):
    fields = FIELDS + [FieldDescriptor(key="secret", title="Secret", table=False)]
    manager = SearchTableManager(fields=fields, loader=loader, executor=InlineTaskExecutor())
    manager.attach_table(table)

    manager.set_column_config(order=["status", "secret"])
    assert [f.key for f in table.schema.fields][:2] == ["status", "secret"]
    assert "secret" not in [f.key for f in table.schema.visible]

    manager.reset_column_config()
    assert [f.key for f in table.schema.fields] == ["name", "org", "status", "created", "secret"]


# ==================== HOOK FAILURES / HEADER SYNC ====================

def test_failing_before_search_loads_unmodified_params(qapp, loader, table):
    def before_search(params):
        params.search["half"] = "applied"
        raise ValueError("hook bug")

    manager = SearchTableManager(fields=FIELDS, loader=loader, executor=InlineTaskExecutor(),
                                 before_search=before_search)
    manager.attach_table(table)
    manager.refresh()

    assert len(loader.calls) == 2
    assert loader.calls[-1].search == {"org": "hq"}
    assert table.rows == [{"id": 1}, {"id": 2}]


def test_sorts_are_pushed_to_table(mounted, table):
    assert table.sorts[-1] == [SortItem("created", "descend")]
    mounted.clear_sorts()
    assert table.sorts[-1] == []


# ==================== THREADED LOADING ====================

def _wait_until(qapp, predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("timed out waiting for background loads")
        qapp.processEvents()
        time.sleep(0.01)


def test_overlapping_resets_on_threads_latest_wins(qapp, table):
    """The first reset finishes last on its worker thread and is still discarded."""
    executor = ThreadedTaskExecutor()
    first_may_finish = threading.Event()
    batches = iter([1, 2])

    def loader(params):
        if params.search["batch"] == 1:
            first_may_finish.wait(2)
            return {"rows": [{"id": "first"}], "total": 1}
        return {"rows": [{"id": "second"}], "total": 1}

    manager = SearchTableManager(
        fields=FIELDS, loader=loader, executor=executor, autoload=False,
        extend_search_params=lambda: {"batch": next(batches)},
    )
    manager.attach_table(table)

    manager.reset()
    manager.reset()
    _wait_until(qapp, lambda: table.rows == [{"id": "second"}])
    first_may_finish.set()
    _wait_until(qapp, lambda: executor.pending_count == 0)

    assert table.rows == [{"id": "second"}]
    executor.cleanup()
