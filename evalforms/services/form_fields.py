"""Evaluation form field engine.

A form field is one of a closed set of kinds (``FieldType``). Everything that
behaves differently per kind goes through a dispatch table keyed by
``FieldType``; each table is checked at import time to cover every member,
so adding a kind without handling it everywhere fails loudly.

Stored responses are free text with no link to the option definitions, so
reading them back is tolerant: options may arrive as a list or as JSON text,
multi-selection values may be a JSON array or a legacy comma-separated
list, and values that no longer match an option are shown as-is.
"""
from __future__ import annotations

import json
import re
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, Iterable, Mapping

_LOG = logging.getLogger("evalforms.form_fields")


class FieldType(str, Enum):
    SHORT_TEXT = "short_text"
    PARAGRAPH = "paragraph"
    STAR_RATING = "star_rating"
    MULTIPLE_CHOICE = "multiple_choice"
    MULTIPLE_SELECTION = "multiple_selection"
    NUMBER = "number"
    DATE = "date"
    DROPDOWN = "dropdown"
    SECTION_HEADER = "section_header"


CHOICE_FIELD_TYPES = frozenset({FieldType.MULTIPLE_CHOICE, FieldType.MULTIPLE_SELECTION, FieldType.DROPDOWN})
STAR_RATING_MIN = 1
STAR_RATING_MAX = 5
_STAR_RATING_RE = re.compile(r"[+-]?[0-9]+")


class FieldInputError(ValueError):
    def __init__(self, field_id: str, message: str):
        super().__init__(message)
        self.field_id = field_id
        self.message = message


@dataclass(frozen=True)
class FieldOption:
    value: str
    label: str

    def as_dict(self) -> dict[str, str]:
        return {"value": self.value, "label": self.label}


@dataclass
class FormField:
    id: str
    field_type: FieldType
    label: str
    placeholder: str | None = None
    help_text: str | None = None
    required: bool = False
    order_index: int = 0
    options: list[FieldOption] = field(default_factory=list)

    @property
    def takes_response(self) -> bool:
        return self.field_type is not FieldType.SECTION_HEADER

    @property
    def is_required(self) -> bool:
        # Section headers are layout only, whatever the stored flag says.
        return bool(self.required) and self.takes_response

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "FormField":
        """Build a field from an API payload (camelCase) or a row dict (snake_case)."""

        def pick(*keys: str) -> Any:
            for key in keys:
                if key in data and data[key] is not None:
                    return data[key]
            return None

        order_raw = pick("orderIndex", "order_index")
        try:
            order_index = int(order_raw) if order_raw is not None else 0
        except (TypeError, ValueError):
            order_index = 0
        return cls(
            id=str(pick("id") or ""),
            field_type=coerce_field_type(pick("fieldType", "field_type", "type")),
            label=str(pick("label") or ""),
            placeholder=pick("placeholder"),
            help_text=pick("helpText", "help_text"),
            required=bool(pick("required")),
            order_index=order_index,
            options=parse_options(pick("options")),
        )


def coerce_field_type(raw: Any) -> FieldType:
    if isinstance(raw, FieldType):
        return raw
    text = str(raw or "").strip().lower()
    try:
        return FieldType(text)
    except ValueError:
        _LOG.debug("Unknown field type %r, treating as short_text", raw)
        return FieldType.SHORT_TEXT


def ordered_fields(fields: Iterable[FormField]) -> list[FormField]:
    return sorted(fields, key=lambda item: item.order_index)


# ---------------------------------------------------------------------------
# Decoding stored data
# ---------------------------------------------------------------------------


def _option_from_raw(item: Any) -> FieldOption | None:
    if isinstance(item, FieldOption):
        return item
    if isinstance(item, Mapping):
        value = item.get("value")
        label = item.get("label")
    else:
        value = getattr(item, "value", None)
        label = getattr(item, "label", None)
    if value is None:
        return None
    value_text = str(value)
    if not value_text.strip():
        return None
    label_text = str(label) if label is not None and str(label).strip() else value_text
    return FieldOption(value=value_text, label=label_text)


def parse_options(raw: Any) -> list[FieldOption]:
    """Options as a list, whether stored structured or as JSON text. Never raises."""
    if raw is None:
        return []
    data = raw
    if isinstance(raw, (bytes, bytearray)):
        data = bytes(raw).decode("utf-8", errors="replace")
    if isinstance(data, str):
        if not data.strip():
            return []
        try:
            data = json.loads(data)
        except ValueError:
            _LOG.debug("Unparseable field options dropped: %r", raw)
            return []
    if not isinstance(data, (list, tuple)):
        return []
    out: list[FieldOption] = []
    for item in data:
        option = _option_from_raw(item)
        if option is not None:
            out.append(option)
    return out


def _decode_json_selection(text: str) -> list[str] | None:
    if not (text.startswith("[") and text.endswith("]")):
        return None
    try:
        parsed = json.loads(text)
    except ValueError:
        return None
    if not isinstance(parsed, list):
        return None
    values = [str(item).strip() for item in parsed if item is not None]
    return [value for value in values if value]


def _decode_comma_selection(text: str) -> list[str]:
    return [token.strip() for token in text.split(",") if token.strip()]


def decode_selection(value: Any) -> list[str]:
    """Selected values of a multi-selection response.

    JSON array first; the comma-separated form predates it and is only tried
    when the JSON decoder does not apply or fails.
    """
    text = str(value or "").strip()
    if not text:
        return []
    decoded = _decode_json_selection(text)
    if decoded is not None:
        return decoded
    return _decode_comma_selection(text)


def encode_selection(values: Iterable[Any], *, as_json: bool = False) -> str:
    selected = [str(value).strip() for value in values if value is not None and str(value).strip()]
    # A comma inside a value cannot survive the comma-joined form.
    if as_json or any("," in value for value in selected):
        return json.dumps(selected, ensure_ascii=False)
    return ",".join(selected)


def find_option(options: Iterable[FieldOption], value: Any) -> FieldOption | None:
    items = list(options)
    for option in items:
        if option.value == value:
            return option
    text = str(value)
    for option in items:
        if option.value == text:
            return option
    trimmed = text.strip()
    for option in items:
        if option.value.strip() == trimmed:
            return option
    lowered = trimmed.lower()
    for option in items:
        if option.value.strip().lower() == lowered:
            return option
    return None


def resolve_option_label(options: Iterable[FieldOption], value: Any) -> str:
    option = find_option(options, value)
    return option.label if option is not None else str(value)


def match_single_option(options: Iterable[FieldOption], value: Any) -> FieldOption | None:
    text = str(value)
    for option in options:
        if option.value == value or option.value == text:
            return option
    return None


# ---------------------------------------------------------------------------
# Display
# ---------------------------------------------------------------------------

DISPLAY_EMPTY = "empty"
DISPLAY_TEXT = "text"
DISPLAY_STARS = "stars"
DISPLAY_LABEL = "label"
DISPLAY_LABELS = "labels"


@dataclass(frozen=True)
class ResponseDisplay:
    kind: str
    text: str
    rating: int | None = None
    labels: tuple[str, ...] = ()


_NO_RESPONSE = ResponseDisplay(kind=DISPLAY_EMPTY, text="No response")


def parse_star_rating(value: Any) -> int | None:
    text = str(value or "").strip()
    if not _STAR_RATING_RE.fullmatch(text):
        return None
    rating = int(text)
    if rating < STAR_RATING_MIN or rating > STAR_RATING_MAX:
        return None
    return rating


def _display_raw(field_def: FormField, value: str) -> ResponseDisplay:
    return ResponseDisplay(kind=DISPLAY_TEXT, text=value)


def _display_stars(field_def: FormField, value: str) -> ResponseDisplay:
    rating = parse_star_rating(value)
    if rating is None:
        return ResponseDisplay(kind=DISPLAY_TEXT, text=value)
    return ResponseDisplay(kind=DISPLAY_STARS, text=f"{rating}/{STAR_RATING_MAX}", rating=rating)


def _display_single_choice(field_def: FormField, value: str) -> ResponseDisplay:
    if not field_def.options:
        return ResponseDisplay(kind=DISPLAY_TEXT, text=value)
    option = match_single_option(field_def.options, value)
    if option is None:
        return ResponseDisplay(kind=DISPLAY_TEXT, text=value)
    return ResponseDisplay(kind=DISPLAY_LABEL, text=option.label, labels=(option.label,))


def _display_selection(field_def: FormField, value: str) -> ResponseDisplay:
    if not field_def.options:
        return ResponseDisplay(kind=DISPLAY_TEXT, text=value)
    selected = decode_selection(value)
    if not selected:
        return _NO_RESPONSE
    labels = tuple(resolve_option_label(field_def.options, item) for item in selected)
    return ResponseDisplay(kind=DISPLAY_LABELS, text=", ".join(labels), labels=labels)


def _display_section(field_def: FormField, value: str) -> ResponseDisplay:
    return _NO_RESPONSE


_DISPLAY_HANDLERS: dict[FieldType, Callable[[FormField, str], ResponseDisplay]] = {
    FieldType.SHORT_TEXT: _display_raw,
    FieldType.PARAGRAPH: _display_raw,
    FieldType.STAR_RATING: _display_stars,
    FieldType.MULTIPLE_CHOICE: _display_single_choice,
    FieldType.MULTIPLE_SELECTION: _display_selection,
    FieldType.NUMBER: _display_raw,
    FieldType.DATE: _display_raw,
    FieldType.DROPDOWN: _display_single_choice,
    FieldType.SECTION_HEADER: _display_section,
}


def display_response(field_def: FormField, value: Any) -> ResponseDisplay:
    text = "" if value is None else str(value)
    if not text.strip():
        return _NO_RESPONSE
    return _DISPLAY_HANDLERS[field_def.field_type](field_def, text)


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------


def _is_blank(raw: Any) -> bool:
    if raw is None:
        return True
    if isinstance(raw, str):
        return not raw.strip()
    if isinstance(raw, (list, tuple, set, frozenset)):
        return len(raw) == 0
    return False


def _input_text(field_def: FormField, raw: Any) -> str:
    return str(raw)


def _input_number(field_def: FormField, raw: Any) -> str:
    if isinstance(raw, bool):
        raise FieldInputError(field_def.id, f"{field_def.label}: expected a number")
    text = str(raw).strip()
    try:
        Decimal(text)
    except InvalidOperation:
        raise FieldInputError(field_def.id, f"{field_def.label}: expected a number")
    if text.lower() in {"nan", "inf", "+inf", "-inf", "infinity", "-infinity", "+infinity"}:
        raise FieldInputError(field_def.id, f"{field_def.label}: expected a number")
    return text


def _input_date(field_def: FormField, raw: Any) -> str:
    if isinstance(raw, datetime):
        return raw.date().isoformat()
    if isinstance(raw, date):
        return raw.isoformat()
    text = str(raw).strip()
    try:
        return date.fromisoformat(text).isoformat()
    except ValueError:
        raise FieldInputError(field_def.id, f"{field_def.label}: expected a date (YYYY-MM-DD)")


def _input_star_rating(field_def: FormField, raw: Any) -> str:
    rating = None if isinstance(raw, bool) else parse_star_rating(raw)
    if rating is None:
        raise FieldInputError(
            field_def.id,
            f"{field_def.label}: rating must be between {STAR_RATING_MIN} and {STAR_RATING_MAX}",
        )
    return str(rating)


def _input_single_choice(field_def: FormField, raw: Any) -> str:
    text = str(raw).strip()
    if not field_def.options:
        return text
    option = find_option(field_def.options, text)
    if option is None:
        raise FieldInputError(field_def.id, f"{field_def.label}: unknown option {text!r}")
    return option.value


def _input_selection(field_def: FormField, raw: Any) -> str:
    if isinstance(raw, str):
        values = decode_selection(raw)
    elif isinstance(raw, (list, tuple, set, frozenset)):
        values = [str(item).strip() for item in raw if item is not None]
    else:
        values = [str(raw).strip()]
    selected: list[str] = []
    for value in values:
        if not value:
            continue
        if field_def.options:
            option = find_option(field_def.options, value)
            if option is None:
                raise FieldInputError(field_def.id, f"{field_def.label}: unknown option {value!r}")
            value = option.value
        if value not in selected:
            selected.append(value)
    return encode_selection(selected)


def _input_section(field_def: FormField, raw: Any) -> str | None:
    return None


_INPUT_HANDLERS: dict[FieldType, Callable[[FormField, Any], str | None]] = {
    FieldType.SHORT_TEXT: _input_text,
    FieldType.PARAGRAPH: _input_text,
    FieldType.STAR_RATING: _input_star_rating,
    FieldType.MULTIPLE_CHOICE: _input_single_choice,
    FieldType.MULTIPLE_SELECTION: _input_selection,
    FieldType.NUMBER: _input_number,
    FieldType.DATE: _input_date,
    FieldType.DROPDOWN: _input_single_choice,
    FieldType.SECTION_HEADER: _input_section,
}


def apply_input(field_def: FormField, responses: Mapping[str, str], raw: Any) -> dict[str, str]:
    """Return a copy of ``responses`` with the answer for ``field_def`` set from ``raw``.

    Blank input clears the entry. Section headers leave the map untouched.
    Raises ``FieldInputError`` when ``raw`` does not fit the field kind.
    """
    updated = dict(responses)
    if not field_def.takes_response:
        return updated
    if _is_blank(raw):
        updated.pop(field_def.id, None)
        return updated
    value = _INPUT_HANDLERS[field_def.field_type](field_def, raw)
    if value is None or not value.strip():
        updated.pop(field_def.id, None)
    else:
        updated[field_def.id] = value
    return updated


def _check_exhaustive(table: Mapping[FieldType, Any], name: str) -> None:
    missing = [member.value for member in FieldType if member not in table]
    if missing:
        raise RuntimeError(f"{name} does not handle field types: {', '.join(missing)}")


_check_exhaustive(_DISPLAY_HANDLERS, "display")
_check_exhaustive(_INPUT_HANDLERS, "input")
