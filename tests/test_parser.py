import json

import pytest

from resume_ai.parser import (
    StructuredTextParser,
    extract_balanced,
    parse_json_from_text,
    repair,
    strip_comments,
    strip_fences,
    trim_to_structure,
)


@pytest.fixture
def parser():
    return StructuredTextParser()


def test_balanced_object_inside_prose(parser):
    text = 'Here is the analysis: {"score": 10, "note": "a {nested} brace"} Hope this helps!'
    assert parser.parse(text) == {"score": 10, "note": "a {nested} brace"}


def test_first_of_several_objects(parser):
    assert parser.parse('Result {"a": 1} and also {"b": 2}') == {"a": 1}


def test_markdown_fences(parser):
    assert parser.parse('```json\n{"score": 80, "strengths": ["Python"]}\n```') == {
        "score": 80, "strengths": ["Python"],
    }


def test_fenced_array(parser):
    assert parser.parse('```\n["Q1", "Q2"]\n```') == ["Q1", "Q2"]


def test_array_after_prose(parser):
    assert parser.parse('Questions:\n["What is Python?", "Why Django?"]') == ["What is Python?", "Why Django?"]


def test_trailing_commas(parser):
    assert parser.parse('{"a": [1, 2,], "b": "x",}') == {"a": [1, 2], "b": "x"}


def test_javascript_style_object(parser):
    text = "{score: 85, strengths: ['Python', 'AWS'], // model comment\n note: 'ok'}"
    assert parser.parse(text) == {"score": 85, "strengths": ["Python", "AWS"], "note": "ok"}


def test_non_standard_literals_become_null(parser):
    assert parser.parse('{"score": NaN, "delta": Infinity}') == {"score": None, "delta": None}


@pytest.mark.parametrize("raw", [None, 42, '', '   ', 'no structure at all', '{broken', '{"a": }'])
def test_unrecoverable_input(parser, raw):
    assert parser.parse(raw) is None


def test_nesting_too_deep_to_decode(parser):
    assert parser.parse('[' * 100000 + ']' * 100000) is None
    assert parser.parse('Result: {"a": ' + '[' * 100000 + ']' * 100000 + '}') is None


@pytest.mark.parametrize("raw", [
    '{"score": 10, "note": "a {nested} brace"}',
    'Sure! ```json\n{"score": 72, "weaknesses": ["Testing"]}\n```',
    "{score: 85, strengths: ['Python']}",
])
def test_reparse_is_stable(parser, raw):
    parsed = parser.parse(raw)
    assert parser.parse(json.dumps(parsed)) == parsed


def test_module_shortcut():
    assert parse_json_from_text('{"ok": true}') == {"ok": True}


def test_strip_fences_handles_bom():
    assert strip_fences('\ufeff```json\n{}\n```') == '{}'


def test_trim_to_structure():
    assert trim_to_structure('prefix {"a": 1} suffix') == '{"a": 1}'
    assert trim_to_structure('no braces') == 'no braces'


def test_extract_balanced_ignores_braces_in_strings():
    text = 'x {"a": "}", "b": {"c": 1}} y'
    assert extract_balanced(text, '{') == '{"a": "}", "b": {"c": 1}}'
    assert extract_balanced('no object', '{') is None


def test_strip_comments_keeps_urls_in_strings():
    text = '{"url": "https://example.com"} // trailing\n/* block */'
    assert strip_comments(text).strip() == '{"url": "https://example.com"}'


def test_repair_quotes_bare_keys():
    assert json.loads(repair("{name: 'Jane', years: 5,}")) == {"name": "Jane", "years": 5}
