"""
Field normalization.

Resolves each caller-supplied descriptor's boolean-or-mapping surface
overrides into frozen per-surface specs. Pure: no descriptor is mutated and
nothing here raises for malformed configuration. A search override that
cannot be resolved becomes a visible placeholder field instead, so one bad
descriptor never takes the host page down.
"""

from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple, Union
import logging

from pyqt_searchtable.forms.field_types import (
    POSITION_MORE,
    POSITION_PRIMARY,
    DialogFieldSpec,
    FieldDescriptor,
    FieldKind,
    ResolvedField,
    SearchFieldSpec,
    TableFieldSpec,
)
from pyqt_searchtable.protocols.search_table_config import SearchTableConfig, get_search_table_config

logger = logging.getLogger(__name__)

Translator = Callable[[str], str]
FieldInput = Union[FieldDescriptor, Mapping[str, Any]]

# Override keys consumed into named spec attributes; the rest land in extras
_SEARCH_KEYS = {"key", "title", "type", "kind", "position", "options", "default_value", "defaultValue"}
_TABLE_KEYS = {"title", "align", "width", "sortable", "render", "hidden"}
_DIALOG_KEYS = {"title", "type", "kind", "required", "options", "default_value", "defaultValue"}


def _identity(text: str) -> str:
    return text


def _override_mapping(override: Any) -> Optional[Dict[str, Any]]:
    """Shorthand True becomes an empty override; a mapping is copied; anything else is None."""
    if override is True:
        return {}
    if isinstance(override, Mapping):
        return dict(override)
    return None


def _extras(override: Mapping[str, Any], consumed: set) -> Dict[str, Any]:
    return {k: v for k, v in override.items() if k not in consumed}


def _pick(override: Mapping[str, Any], *names: str, default: Any = None) -> Any:
    for name in names:
        if name in override and override[name] is not None:
            return override[name]
    return default


def _config_error_placeholder(index: int, config: SearchTableConfig,
                              translate: Translator, default_kind: FieldKind) -> SearchFieldSpec:
    return SearchFieldSpec(
        key=f"__config_error_{index}",
        title=translate(config.config_error_title),
        kind=default_kind,
        position=POSITION_PRIMARY,
        config_error=True,
    )


def _resolve_search(descriptor: FieldDescriptor, index: int, kind: FieldKind, title: str,
                    config: SearchTableConfig, translate: Translator,
                    default_kind: FieldKind) -> Optional[SearchFieldSpec]:
    raw = descriptor.search
    if not raw:
        return None

    override = _override_mapping(raw)
    if override is None:
        logger.warning(
            f"Field #{index} ({descriptor.key!r}): search override must be a bool or mapping, "
            f"got {type(raw).__name__}"
        )
        return _config_error_placeholder(index, config, translate, default_kind)

    key = override.get("key") or descriptor.key
    if not key:
        logger.warning(f"Field #{index} ({title!r}): search enabled but no key could be resolved")
        return _config_error_placeholder(index, config, translate, default_kind)

    search_title = override.get("title")
    return SearchFieldSpec(
        key=key,
        title=translate(search_title) if search_title else title,
        kind=FieldKind.coerce(_pick(override, "kind", "type"), kind),
        position=POSITION_MORE if override.get("position") == POSITION_MORE else POSITION_PRIMARY,
        options=tuple(_pick(override, "options", default=descriptor.options) or ()),
        default_value=_pick(override, "default_value", "defaultValue", default=descriptor.default_value),
        children=_resolve_search_children(descriptor, default_kind, translate),
        extras=_extras(override, _SEARCH_KEYS),
    )


def _resolve_search_children(descriptor: FieldDescriptor, default_kind: FieldKind,
                             translate: Translator) -> Tuple[SearchFieldSpec, ...]:
    """Children of a grouped search field are searchable unless they opt out with search=False."""
    children = []
    for child in (_as_descriptor(c) for c in descriptor.children or ()):
        if not child.key or child.search is False:
            continue
        override = _override_mapping(child.search) or {}
        children.append(SearchFieldSpec(
            key=override.get("key") or child.key,
            title=translate(child.title or ""),
            kind=FieldKind.coerce(_pick(override, "kind", "type", default=child.kind), default_kind),
            options=tuple(child.options or ()),
            default_value=child.default_value,
        ))
    return tuple(children)


def _resolve_table(descriptor: FieldDescriptor, kind: FieldKind, title: str,
                   config: SearchTableConfig, translate: Translator) -> TableFieldSpec:
    raw = descriptor.table
    hidden = raw is False
    override = _override_mapping(raw) or {}
    if "hidden" in override:
        logger.debug(f"Field {descriptor.key!r}: 'hidden' override ignored, use table=False instead")

    table_title = override.get("title")
    return TableFieldSpec(
        key=descriptor.key,
        title=translate(table_title) if table_title else title,
        kind=kind,
        align=override.get("align") or descriptor.align or config.default_align,
        hidden=hidden,
        width=_pick(override, "width", default=descriptor.width),
        sortable=bool(_pick(override, "sortable", default=descriptor.sortable)),
        options=tuple(descriptor.options or ()),
        default_filter_value=descriptor.default_filter_value,
        default_sorts_value=descriptor.default_sorts_value,
        sort_order=descriptor.sort_order,
        render=_pick(override, "render", default=descriptor.render),
        extras={**descriptor.extras, **_extras(override, _TABLE_KEYS)},
    )


def _resolve_dialog(descriptor: FieldDescriptor, kind: FieldKind, title: str,
                    translate: Translator) -> Optional[DialogFieldSpec]:
    override = _override_mapping(descriptor.dialog)
    if override is None:
        if descriptor.dialog:
            logger.warning(
                f"Field {descriptor.key!r}: dialog override must be a bool or mapping, "
                f"got {type(descriptor.dialog).__name__}; field left out of the dialog"
            )
        return None

    dialog_title = override.get("title")
    return DialogFieldSpec(
        key=descriptor.key,
        title=translate(dialog_title) if dialog_title else title,
        kind=FieldKind.coerce(_pick(override, "kind", "type"), kind),
        required=bool(override.get("required", False)),
        options=tuple(_pick(override, "options", default=descriptor.options) or ()),
        default_value=_pick(override, "default_value", "defaultValue", default=descriptor.default_value),
        extras=_extras(override, _DIALOG_KEYS),
    )


def _as_descriptor(field: FieldInput) -> FieldDescriptor:
    if isinstance(field, FieldDescriptor):
        return field
    return FieldDescriptor.from_mapping(field)


def normalize_field(field: FieldInput, index: int = 0,
                    config: Optional[SearchTableConfig] = None,
                    translate: Optional[Translator] = None) -> ResolvedField:
    """
    Resolve one descriptor into its per-surface specs.

    Args:
        field: FieldDescriptor or plain mapping in the authoring format
        index: Position in the field list (names placeholder keys)
        config: Resolution defaults (global config when None)
        translate: Title translator for the active locale

    Returns:
        ResolvedField with table always set, search/dialog when enabled
    """
    config = config or get_search_table_config()
    translate = translate or _identity
    default_kind = FieldKind.coerce(config.default_field_kind, FieldKind.INPUT)

    descriptor = _as_descriptor(field)
    kind = FieldKind.coerce(descriptor.kind, default_kind)
    title = translate(descriptor.title or "")

    return ResolvedField(
        key=descriptor.key,
        title=title,
        kind=kind,
        table=_resolve_table(descriptor, kind, title, config, translate),
        search=_resolve_search(descriptor, index, kind, title, config, translate, default_kind),
        dialog=_resolve_dialog(descriptor, kind, title, translate),
    )


def normalize_fields(fields: Optional[Iterable[FieldInput]],
                     config: Optional[SearchTableConfig] = None,
                     translate: Optional[Translator] = None) -> Tuple[ResolvedField, ...]:
    """Resolve a whole field list, preserving order."""
    config = config or get_search_table_config()
    return tuple(
        normalize_field(field, index, config, translate)
        for index, field in enumerate(fields or ())
    )
