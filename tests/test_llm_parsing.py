# -*- coding: utf-8 -*-

from __future__ import annotations

import unittest

from werkowt.llm.parsing import (
    as_str_list,
    coerce_float,
    contains_json_object,
    extract_json_object,
    extract_text,
    first_present,
    iter_json_object_candidates,
    remove_trailing_commas,
)


class TestJsonExtraction(unittest.TestCase):
    def test_object_wrapped_in_prose(self) -> None:
        text = 'Here is your plan:\n{"title": "Week", "totalDays": 2}\nEnjoy!'
        self.assertEqual(extract_json_object(text), {"title": "Week", "totalDays": 2})

    def test_code_fence_and_trailing_commas(self) -> None:
        text = '```json\n{"a": [1, 2,], "b": {"c": "x",},}\n```'
        self.assertEqual(extract_json_object(text), {"a": [1, 2], "b": {"c": "x"}})

    def test_braces_inside_strings_are_ignored(self) -> None:
        text = 'prefix {"note": "use {braces} freely", "n": 1} suffix {"second": true}'
        candidates = iter_json_object_candidates(text)
        self.assertEqual(len(candidates), 2)
        self.assertEqual(extract_json_object(text), {"note": "use {braces} freely", "n": 1})

    def test_python_style_literal(self) -> None:
        text = "{'name': 'Oats', 'vegan': True, 'brand': None}"
        self.assertEqual(extract_json_object(text), {"name": "Oats", "vegan": True, "brand": None})

    def test_smart_quotes_are_normalised(self) -> None:
        text = "{“title”: “Plan”}"
        self.assertEqual(extract_json_object(text), {"title": "Plan"})

    def test_no_object_raises(self) -> None:
        with self.assertRaises(ValueError):
            extract_json_object("Sorry, I cannot help with that.")
        with self.assertRaises(ValueError):
            extract_json_object("{ this is not json at all }")

    def test_contains_json_object(self) -> None:
        self.assertTrue(contains_json_object('x {"a": 1} y'))
        self.assertFalse(contains_json_object("no braces"))
        self.assertFalse(contains_json_object("} reversed {"))

    def test_remove_trailing_commas_keeps_strings(self) -> None:
        self.assertEqual(remove_trailing_commas('{"s": "a,}", "t": 1,}'), '{"s": "a,}", "t": 1}')


class TestCoercion(unittest.TestCase):
    def test_coerce_float(self) -> None:
        self.assertEqual(coerce_float("400 kcal"), 400.0)
        self.assertEqual(coerce_float("1,200"), 1200.0)
        self.assertEqual(coerce_float(12), 12.0)
        self.assertIsNone(coerce_float(True))
        self.assertIsNone(coerce_float("about"))
        self.assertIsNone(coerce_float(None))

    def test_as_str_list(self) -> None:
        self.assertEqual(as_str_list("one"), ["one"])
        self.assertEqual(as_str_list(["a", "", None, 3]), ["a", "3"])
        self.assertEqual(as_str_list(None), [])

    def test_first_present_skips_none(self) -> None:
        self.assertEqual(first_present({"a": None, "b": 0}, ["a", "b"]), 0)
        self.assertIsNone(first_present({}, ["a"]))

    def test_extract_text_joins_text_blocks(self) -> None:
        response = {
            "content": [
                {"type": "text", "text": "Hello "},
                {"type": "tool_use", "name": "x"},
                {"type": "text", "text": "world"},
            ]
        }
        self.assertEqual(extract_text(response), "Hello world")
        self.assertEqual(extract_text({"content": []}), "")
        self.assertEqual(extract_text(None), "")


if __name__ == "__main__":
    unittest.main()
