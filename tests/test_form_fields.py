import unittest
from datetime import date

from evalforms.services.form_fields import (
    DISPLAY_EMPTY,
    DISPLAY_LABEL,
    DISPLAY_LABELS,
    DISPLAY_STARS,
    DISPLAY_TEXT,
    FieldInputError,
    FieldOption,
    FieldType,
    FormField,
    apply_input,
    coerce_field_type,
    decode_selection,
    display_response,
    encode_selection,
    parse_options,
    resolve_option_label,
)

POSITIONS = [FieldOption("fwd", "Forward"), FieldOption("mid", "Midfielder"), FieldOption("gk", "Goalkeeper")]


def _field(field_type: FieldType, **values) -> FormField:
    values.setdefault("id", "f1")
    values.setdefault("label", "Position")
    return FormField(field_type=field_type, **values)


class OptionParsingTests(unittest.TestCase):
    def test_options_accepted_as_list_or_json_text(self):
        as_list = parse_options([{"value": "fwd", "label": "Forward"}])
        as_text = parse_options('[{"value": "fwd", "label": "Forward"}]')
        self.assertEqual(as_list, [FieldOption("fwd", "Forward")])
        self.assertEqual(as_text, as_list)

    def test_malformed_options_never_raise(self):
        self.assertEqual(parse_options("{not json"), [])
        self.assertEqual(parse_options('{"value": "fwd"}'), [])
        self.assertEqual(parse_options(None), [])
        self.assertEqual(parse_options(""), [])
        self.assertEqual(
            parse_options([{"value": ""}, {"label": "No value"}, {"value": 3}, "junk"]),
            [FieldOption("3", "3")],
        )

    def test_unknown_field_type_falls_back_to_short_text(self):
        self.assertIs(coerce_field_type("signature"), FieldType.SHORT_TEXT)
        self.assertIs(coerce_field_type(" Dropdown "), FieldType.DROPDOWN)

    def test_from_mapping_accepts_api_payload(self):
        item = FormField.from_mapping(
            {
                "id": "abc",
                "fieldType": "multiple_selection",
                "label": "Strengths",
                "required": True,
                "orderIndex": "3",
                "options": '[{"value": "arm", "label": "Arm"}]',
            }
        )
        self.assertIs(item.field_type, FieldType.MULTIPLE_SELECTION)
        self.assertEqual(item.order_index, 3)
        self.assertEqual(item.options, [FieldOption("arm", "Arm")])
        self.assertTrue(item.is_required)

    def test_section_header_is_never_required(self):
        header = _field(FieldType.SECTION_HEADER, required=True)
        self.assertFalse(header.is_required)
        self.assertFalse(header.takes_response)


class SelectionCodecTests(unittest.TestCase):
    def test_json_and_comma_forms_decode_to_same_set(self):
        self.assertEqual(set(decode_selection('["fwd","mid"]')), {"fwd", "mid"})
        self.assertEqual(set(decode_selection("fwd,mid")), {"fwd", "mid"})
        self.assertEqual(set(decode_selection(" fwd , mid ,")), {"fwd", "mid"})

    def test_round_trip_through_both_encodings(self):
        selected = {"gk", "fwd", "mid"}
        self.assertEqual(set(decode_selection(encode_selection(selected))), selected)
        self.assertEqual(set(decode_selection(encode_selection(selected, as_json=True))), selected)

    def test_values_with_commas_are_stored_as_json(self):
        stored = encode_selection(["Left, wide", "mid"])
        self.assertTrue(stored.startswith("["))
        self.assertEqual(decode_selection(stored), ["Left, wide", "mid"])

    def test_broken_json_falls_back_to_comma_split(self):
        self.assertEqual(decode_selection('["fwd",'), ['["fwd"'])
        self.assertEqual(decode_selection("[fwd, mid]"), ["[fwd", "mid]"])
        self.assertEqual(decode_selection("[]"), [])
        self.assertEqual(decode_selection("   "), [])


class OptionResolutionTests(unittest.TestCase):
    def test_label_resolution_is_tolerant(self):
        options = [FieldOption("fwd", "Forward"), FieldOption("10", "Ten")]
        self.assertEqual(resolve_option_label(options, "fwd"), "Forward")
        self.assertEqual(resolve_option_label(options, 10), "Ten")
        self.assertEqual(resolve_option_label(options, " fwd "), "Forward")
        self.assertEqual(resolve_option_label(options, "FWD"), "Forward")
        self.assertEqual(resolve_option_label(options, "goalie"), "goalie")


class DisplayTests(unittest.TestCase):
    def test_blank_values_show_no_response(self):
        for value in (None, "", "   "):
            shown = display_response(_field(FieldType.SHORT_TEXT), value)
            self.assertEqual(shown.kind, DISPLAY_EMPTY)
            self.assertEqual(shown.text, "No response")

    def test_star_rating_only_for_integers_in_range(self):
        rating = _field(FieldType.STAR_RATING, label="Speed")
        shown = display_response(rating, "4")
        self.assertEqual((shown.kind, shown.rating, shown.text), (DISPLAY_STARS, 4, "4/5"))
        for raw in ("0", "6", "4.5", "fast", "+-3", "--4", "\u00b2"):
            shown = display_response(rating, raw)
            self.assertEqual(shown.kind, DISPLAY_TEXT)
            self.assertEqual(shown.text, raw)

    def test_single_choice_shows_label_or_raw_value(self):
        dropdown = _field(FieldType.DROPDOWN, options=[FieldOption("fwd", "Forward")])
        self.assertEqual(display_response(dropdown, "fwd").text, "Forward")
        self.assertEqual(display_response(dropdown, "fwd").kind, DISPLAY_LABEL)
        unknown = display_response(dropdown, "goalie")
        self.assertEqual((unknown.kind, unknown.text), (DISPLAY_TEXT, "goalie"))

    def test_multi_selection_resolves_each_value(self):
        selection = _field(FieldType.MULTIPLE_SELECTION, options=POSITIONS)
        shown = display_response(selection, '["FWD","goalie"]')
        self.assertEqual(shown.kind, DISPLAY_LABELS)
        self.assertEqual(shown.labels, ("Forward", "goalie"))
        self.assertEqual(shown.text, "Forward, goalie")
        self.assertEqual(display_response(selection, "[]").kind, DISPLAY_EMPTY)

    def test_choice_without_options_shows_raw_text(self):
        selection = _field(FieldType.MULTIPLE_SELECTION)
        self.assertEqual(display_response(selection, "fwd,mid").text, "fwd,mid")


class ApplyInputTests(unittest.TestCase):
    def test_blank_input_clears_entry_without_mutating_source(self):
        text = _field(FieldType.SHORT_TEXT)
        source = {"f1": "old", "f2": "keep"}
        updated = apply_input(text, source, "  ")
        self.assertEqual(updated, {"f2": "keep"})
        self.assertEqual(source, {"f1": "old", "f2": "keep"})

    def test_number_and_date_are_checked(self):
        number = _field(FieldType.NUMBER, label="Forty time")
        self.assertEqual(apply_input(number, {}, "4.52"), {"f1": "4.52"})
        self.assertEqual(apply_input(number, {}, 12), {"f1": "12"})
        for bad in ("fast", "NaN", True):
            with self.assertRaises(FieldInputError):
                apply_input(number, {}, bad)

        when = _field(FieldType.DATE, label="Seen on")
        self.assertEqual(apply_input(when, {}, date(2026, 3, 1)), {"f1": "2026-03-01"})
        self.assertEqual(apply_input(when, {}, "2026-03-01"), {"f1": "2026-03-01"})
        with self.assertRaises(FieldInputError):
            apply_input(when, {}, "03/01/2026")

    def test_star_rating_input_range(self):
        rating = _field(FieldType.STAR_RATING, label="Speed")
        self.assertEqual(apply_input(rating, {}, 5), {"f1": "5"})
        with self.assertRaises(FieldInputError) as ctx:
            apply_input(rating, {}, "6")
        self.assertEqual(ctx.exception.field_id, "f1")
        for raw in ("+-3", "--4", "²"):
            with self.assertRaises(FieldInputError):
                apply_input(rating, {}, raw)

    def test_choice_inputs_store_canonical_values(self):
        dropdown = _field(FieldType.DROPDOWN, options=POSITIONS)
        self.assertEqual(apply_input(dropdown, {}, "GK"), {"f1": "gk"})
        with self.assertRaises(FieldInputError):
            apply_input(dropdown, {}, "striker")

        selection = _field(FieldType.MULTIPLE_SELECTION, options=POSITIONS)
        self.assertEqual(apply_input(selection, {}, ["Mid", "fwd", "mid"]), {"f1": "mid,fwd"})
        self.assertEqual(apply_input(selection, {"f1": "mid"}, []), {})

    def test_section_header_never_stores_a_value(self):
        header = _field(FieldType.SECTION_HEADER)
        self.assertEqual(apply_input(header, {"f2": "x"}, "anything"), {"f2": "x"})
