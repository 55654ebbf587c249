"""Variant price and stock resolution.

A product's variant definition names a set of option axes (size, colour, or
any attribute the vendor defines), each with an ordered list of allowed
values, plus optional price and stock overrides keyed by a *variant
signature*:

    color=red|size=m

The signature is built from a selection by normalizing every axis name and
value, dropping blanks, and sorting the pairs by axis. Lookups try the key
as-is first and then fall back to a case-insensitive comparison.

Everything here is a pure function of (definition, selection). Nothing
raises: unresolvable input degrades to the base price and to unconstrained
stock.
"""

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

_WHITESPACE = re.compile(r"\s+")
_LABEL_SEPARATORS = re.compile(r"[_-]+")

# Legacy shorthand fields, in the order they are rendered
_LEGACY_AXES = (("sizes", "size", "Size"), ("colors", "color", "Color"))


def normalize_axis_name(value: Any) -> str:
    """Case-fold an axis name and collapse whitespace to underscores."""
    if value is None:
        return ""
    return _WHITESPACE.sub("_", str(value).strip().lower())


def normalize_axis_value(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip().lower()


@dataclass(frozen=True)
class VariantAxis:
    """One renderable option axis: stable key, display label, allowed values."""

    key: str
    label: str
    values: tuple[str, ...]


@dataclass(frozen=True)
class VariantDefinition:
    """A product's variant configuration.

    ``prices`` and ``stock`` are ``None`` when the product defines no such
    override map at all, which is different from an empty map only for stock
    (no map means unconstrained).
    """

    attributes: tuple[Mapping[str, Any], ...] = ()
    sizes: tuple[str, ...] = ()
    colors: tuple[str, ...] = ()
    prices: Mapping[str, Any] | None = None
    stock: Mapping[str, Any] | None = None
    default_selection: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "VariantDefinition":
        """Build a definition from a catalogue payload.

        Accepts both the snake_case names and the storefront's camelCase
        (``defaultVariant``, ``stockMap``). Attributes may be a list of
        ``{"name": ..., "values": [...]}`` entries or a mapping of name to values.
        """
        if not data:
            return cls()

        raw_attributes = data.get("attributes") or ()
        if isinstance(raw_attributes, Mapping):
            raw_attributes = [{"name": name, "values": values} for name, values in raw_attributes.items()]

        prices = data.get("prices")
        stock = data.get("stock", data.get("stockMap"))
        default_selection = data.get("default_selection") or data.get("defaultVariant") or {}

        return cls(
            attributes=tuple(a for a in raw_attributes if isinstance(a, Mapping)),
            sizes=tuple(data.get("sizes") or ()),
            colors=tuple(data.get("colors") or ()),
            prices=prices if isinstance(prices, Mapping) else None,
            stock=stock if isinstance(stock, Mapping) else None,
            default_selection=dict(default_selection) if isinstance(default_selection, Mapping) else {},
        )


# ---------------------------------------------------------------------------
# Axes
# ---------------------------------------------------------------------------
def _clean_values(values: Any) -> tuple[str, ...]:
    if not isinstance(values, list | tuple):
        return ()
    seen: list[str] = []
    for value in values:
        if isinstance(value, Mapping):
            value = value.get("value", value.get("name"))
        text = "" if value is None else str(value).strip()
        if text and text not in seen:
            seen.append(text)
    return tuple(seen)


def _explicit_axes(definition: VariantDefinition) -> list[VariantAxis]:
    axes: list[VariantAxis] = []
    keys: set[str] = set()
    for attribute in definition.attributes:
        label = str(attribute.get("name") or attribute.get("label") or "").strip()
        key = normalize_axis_name(label)
        values = _clean_values(attribute.get("values", attribute.get("options")))
        if not key or not values or key in keys:
            continue
        keys.add(key)
        axes.append(VariantAxis(key=key, label=label, values=values))
    return axes


def resolve_axes(definition: VariantDefinition) -> list[VariantAxis]:
    """Return the axes to render for a product.

    Explicit attributes win. The legacy ``sizes``/``colors`` shorthand is only
    consulted when no explicit attribute yields a usable axis. Axes without
    values are dropped.
    """
    axes = _explicit_axes(definition)
    if axes:
        return axes

    for field_name, key, label in _LEGACY_AXES:
        values = _clean_values(list(getattr(definition, field_name)))
        if values:
            axes.append(VariantAxis(key=key, label=label, values=values))
    return axes


# ---------------------------------------------------------------------------
# Signatures and labels
# ---------------------------------------------------------------------------
def variant_signature(selection: Mapping[str, Any] | None) -> str:
    """Canonical lookup key for a selection, e.g. ``color=red|size=m``."""
    pairs = [(normalize_axis_name(axis), normalize_axis_value(value)) for axis, value in (selection or {}).items()]
    pairs = sorted((axis, value) for axis, value in pairs if axis and value)
    return "|".join(f"{axis}={value}" for axis, value in pairs)


def format_variant_label(selection: Mapping[str, Any] | None) -> str:
    """Human readable label, e.g. ``Size: M | Color: Red``."""
    parts = []
    for axis, value in (selection or {}).items():
        axis_text = "" if axis is None else str(axis).strip()
        value_text = "" if value is None else str(value).strip()
        if not axis_text or not value_text:
            continue
        axis_label = _WHITESPACE.sub(" ", _LABEL_SEPARATORS.sub(" ", axis_text)).strip()
        parts.append(f"{axis_label[:1].upper()}{axis_label[1:]}: {value_text}")
    return " | ".join(parts)


# ---------------------------------------------------------------------------
# Override lookups
# ---------------------------------------------------------------------------
def lookup_override(overrides: Mapping[str, Any] | None, signature: str) -> tuple[bool, Any]:
    """Find ``signature`` in an override map.

    Two passes: an exact match on the (trimmed) key, then a case-insensitive
    one. Returns ``(found, value)``.
    """
    if not overrides or not signature:
        return False, None

    for key, value in overrides.items():
        if str(key).strip() == signature:
            return True, value

    for key, value in overrides.items():
        if str(key).strip().lower() == signature:
            return True, value

    return False, None


def _as_number(value: Any) -> float | int | None:
    """Parse a finite, non-negative number; anything else is ``None``."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number < 0:
        return None
    return int(number) if number.is_integer() and not isinstance(value, float) else number


def resolve_price(definition: VariantDefinition, selection: Mapping[str, Any] | None, base_price: Any) -> Any:
    """Effective unit price for a selection, falling back to ``base_price``."""
    found, value = lookup_override(definition.prices, variant_signature(selection))
    if not found:
        return base_price

    price = _as_number(value)
    return base_price if price is None else price


def resolve_stock(definition: VariantDefinition, selection: Mapping[str, Any] | None) -> float | int | None:
    """Remaining stock for a selection; ``None`` means unconstrained or unknown."""
    if definition.stock is None:
        return None

    found, value = lookup_override(definition.stock, variant_signature(selection))
    if not found:
        return None
    return _as_number(value)


def is_option_available(
    definition: VariantDefinition,
    selection: Mapping[str, Any] | None,
    axis: str,
    candidate_value: Any,
) -> bool:
    """Would selecting ``candidate_value`` on ``axis`` leave something to buy?"""
    target = normalize_axis_name(axis)
    preview = {key: value for key, value in (selection or {}).items() if normalize_axis_name(key) != target}
    preview[axis] = candidate_value
    stock = resolve_stock(definition, preview)
    return stock is None or stock > 0


# ---------------------------------------------------------------------------
# Selection helpers
# ---------------------------------------------------------------------------
def toggle_selection(selection: Mapping[str, Any] | None, axis: str, value: Any) -> dict[str, Any]:
    """Select ``value`` on ``axis``; selecting the current value deselects the axis."""
    updated = dict(selection or {})
    target = normalize_axis_name(axis)
    current_key = next((key for key in updated if normalize_axis_name(key) == target), None)

    if current_key is not None:
        current = updated.pop(current_key)
        if normalize_axis_value(current) == normalize_axis_value(value):
            return updated

    updated[axis] = value
    return updated


def default_selection(definition: VariantDefinition) -> dict[str, Any]:
    """Initial selection: the product default, else the first value of the first axis."""
    configured = {
        axis: value
        for axis, value in definition.default_selection.items()
        if normalize_axis_name(axis) and normalize_axis_value(value)
    }
    if configured:
        return configured

    axes = resolve_axes(definition)
    if not axes:
        return {}
    return {axes[0].key: axes[0].values[0]}
