"""Tests for schema splitting."""

from pyqt_searchtable.forms.field_normalizer import normalize_fields
from pyqt_searchtable.forms.field_types import FieldDescriptor, FieldSchemas
from pyqt_searchtable.forms.schema_splitter import configure_columns, resolve_schemas, split_fields


FIELDS = [
    FieldDescriptor(key="org", title="Organization", search=True, dialog={"required": True}),
    FieldDescriptor(key="warehouse", title="Warehouse", search={"position": "more"}, sortable=True),
    FieldDescriptor(key="code", title="Code", kind="textarea", dialog=True),
    FieldDescriptor(key="secret", title="Secret", table=False, search=True),
    FieldDescriptor(key="region", title="Region", search={"position": "side"}),
]


def test_split_partitions():
    """Search fields split by position; every field is a column."""
    schemas = resolve_schemas(FIELDS)

    assert [f.key for f in schemas.search.primary] == ["org", "secret", "region"]
    assert [f.key for f in schemas.search.more] == ["warehouse"]
    assert [f.key for f in schemas.table.fields] == ["org", "warehouse", "code", "secret", "region"]
    assert [f.key for f in schemas.table.visible] == ["org", "warehouse", "code", "region"]
    assert [f.key for f in schemas.dialog.fields] == ["org", "code"]


def test_split_is_idempotent():
    """Re-splitting unchanged input gives structurally equal schemas."""
    first = split_fields(normalize_fields(FIELDS))
    second = split_fields(normalize_fields(FIELDS))

    assert first == second
    assert first is not second


def test_partition_exhaustiveness():
    """Each field is in exactly one of primary/more/neither, and hidden iff table is False."""
    fields = FIELDS + [FieldDescriptor(key="plain", title="Plain")]
    schemas = resolve_schemas(fields)
    primary = {f.key for f in schemas.search.primary}
    more = {f.key for f in schemas.search.more}

    for descriptor, column in zip(fields, schemas.table.fields):
        in_search = int(descriptor.key in primary) + int(descriptor.key in more)
        assert in_search == (1 if descriptor.search else 0)
        assert column.hidden == (descriptor.table is False)


def test_placeholder_lands_in_primary():
    schemas = resolve_schemas([FieldDescriptor(title="No key", search={"position": "more"})])
    assert len(schemas.search.primary) == 1
    assert schemas.search.primary[0].config_error
    assert schemas.search.more == ()


def test_empty_fields_give_empty_schemas():
    assert resolve_schemas([]) == FieldSchemas()


def test_configure_columns():
    """Listed keys move to the front; unlisted columns hide but stay in the schema."""
    table = resolve_schemas(FIELDS).table
    configured = configure_columns(table, visible_keys=["code", "org"], order=["code", "org"])

    assert [f.key for f in configured.fields] == ["code", "org", "warehouse", "secret", "region"]
    assert [f.key for f in configured.visible] == ["code", "org"]
    assert [f.key for f in table.visible] == ["org", "warehouse", "code", "region"]


def test_configure_columns_without_config_is_identity():
    table = resolve_schemas(FIELDS).table
    assert configure_columns(table) == table
