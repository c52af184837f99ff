"""
Field descriptor types.

A FieldDescriptor is the authorable unit of configuration: one logical data
attribute and how it appears on the search panel, the table and the dialog
form. Each surface override is a tagged union of shorthand (bool) and an
explicit override mapping. The normalizer resolves that shorthand once into
the frozen per-surface specs defined here, so downstream code never has to
ask "is this a bool or a dict?" again.

Architecture:
    - FieldKind: fixed input-type enumeration
    - FieldDescriptor: raw, caller-supplied descriptor (plain data)
    - SearchFieldSpec / TableFieldSpec / DialogFieldSpec: resolved per surface
    - ResolvedField: one descriptor after normalization
    - SearchSchema / TableSchema / DialogSchema / FieldSchemas: split output
    - SortItem: one entry of an applied multi-column sort
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union
import logging

logger = logging.getLogger(__name__)

SurfaceOverride = Union[bool, Mapping[str, Any], None]

POSITION_PRIMARY = "primary"
POSITION_MORE = "more"

SORT_ASCEND = "ascend"
SORT_DESCEND = "descend"
SORT_ORDERS = (SORT_ASCEND, SORT_DESCEND)


class FieldKind(Enum):
    """Input types a field can render as."""
    INPUT = "input"
    TEXTAREA = "textarea"
    NUMBER = "number"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    SWITCH = "switch"
    DATE = "date"

    @classmethod
    def coerce(cls, value: Any, default: "FieldKind") -> "FieldKind":
        """Return the matching kind, or default for unknown values."""
        if isinstance(value, cls):
            return value
        if value is None or value == "":
            return default
        try:
            return cls(value)
        except ValueError:
            logger.warning(f"Unknown field kind {value!r}, falling back to {default.value!r}")
            return default


# Authoring-format (camelCase) names accepted by FieldDescriptor.from_mapping
_MAPPING_ALIASES = {
    "type": "kind",
    "defaultValue": "default_value",
    "defaultFilterValue": "default_filter_value",
    "defaultSortsValue": "default_sorts_value",
    "sortOrder": "sort_order",
}


@dataclass
class FieldDescriptor:
    """
    Caller-supplied field configuration.

    Keys need only be unique within whichever partition consumes them;
    grouped fields may repeat keys in their own children.
    """
    key: Optional[str] = None
    title: str = ""
    kind: Union[FieldKind, str, None] = None
    search: SurfaceOverride = None
    table: SurfaceOverride = None
    dialog: SurfaceOverride = None
    options: List[Any] = field(default_factory=list)
    default_value: Any = None
    default_filter_value: Any = None
    default_sorts_value: Optional[str] = None
    sort_order: Optional[int] = None
    align: Optional[str] = None
    width: Optional[int] = None
    sortable: bool = False
    render: Optional[Callable[..., Any]] = None
    children: List["FieldDescriptor"] = field(default_factory=list)
    extras: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "FieldDescriptor":
        """Build a descriptor from plain data, accepting camelCase names."""
        known = set(cls.__dataclass_fields__) - {"extras", "children"}
        kwargs: Dict[str, Any] = {}
        extras: Dict[str, Any] = dict(data.get("extras") or {})
        for name, value in data.items():
            if name in ("extras", "children"):
                continue
            name = _MAPPING_ALIASES.get(name, name)
            if name in known:
                kwargs[name] = value
            else:
                extras[name] = value
        children = [
            child if isinstance(child, FieldDescriptor) else cls.from_mapping(child)
            for child in data.get("children") or []
        ]
        return cls(children=children, extras=extras, **kwargs)


@dataclass(frozen=True)
class SearchFieldSpec:
    """A field as the search panel sees it."""
    key: str
    title: str
    kind: FieldKind
    position: str = POSITION_PRIMARY
    options: Tuple[Any, ...] = ()
    default_value: Any = None
    children: Tuple["SearchFieldSpec", ...] = ()
    config_error: bool = False
    extras: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_more(self) -> bool:
        return self.position == POSITION_MORE


@dataclass(frozen=True)
class TableFieldSpec:
    """A column as the table sees it. Hidden columns stay in the schema."""
    key: Optional[str]
    title: str
    kind: FieldKind
    align: str
    hidden: bool = False
    width: Optional[int] = None
    sortable: bool = False
    options: Tuple[Any, ...] = ()
    default_filter_value: Any = None
    default_sorts_value: Optional[str] = None
    sort_order: Optional[int] = None
    render: Optional[Callable[..., Any]] = None
    extras: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DialogFieldSpec:
    """A field as the create/edit dialog sees it."""
    key: Optional[str]
    title: str
    kind: FieldKind
    required: bool = False
    options: Tuple[Any, ...] = ()
    default_value: Any = None
    extras: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ResolvedField:
    """One descriptor after normalization. table is always present."""
    key: Optional[str]
    title: str
    kind: FieldKind
    table: TableFieldSpec
    search: Optional[SearchFieldSpec] = None
    dialog: Optional[DialogFieldSpec] = None

    @property
    def has_config_error(self) -> bool:
        return self.search is not None and self.search.config_error


@dataclass(frozen=True)
class SearchSchema:
    """Primary and overflow search fields, each in descriptor order."""
    primary: Tuple[SearchFieldSpec, ...] = ()
    more: Tuple[SearchFieldSpec, ...] = ()

    @property
    def all_fields(self) -> Tuple[SearchFieldSpec, ...]:
        return self.primary + self.more


@dataclass(frozen=True)
class TableSchema:
    """Every column in descriptor order, hidden ones included."""
    fields: Tuple[TableFieldSpec, ...] = ()

    @property
    def visible(self) -> Tuple[TableFieldSpec, ...]:
        return tuple(f for f in self.fields if not f.hidden)


@dataclass(frozen=True)
class DialogSchema:
    fields: Tuple[DialogFieldSpec, ...] = ()


@dataclass(frozen=True)
class FieldSchemas:
    """Everything the splitter produces from one field list."""
    search: SearchSchema = SearchSchema()
    table: TableSchema = TableSchema()
    dialog: DialogSchema = DialogSchema()


@dataclass(frozen=True)
class SortItem:
    """One applied sort. Position in the SortSpec is its precedence."""
    key: str
    order: str

    @classmethod
    def coerce(cls, value: Union["SortItem", Mapping[str, Any]]) -> "SortItem":
        if isinstance(value, SortItem):
            return value
        return cls(key=value["key"], order=value["order"])

    def to_dict(self) -> Dict[str, str]:
        return {"key": self.key, "order": self.order}
