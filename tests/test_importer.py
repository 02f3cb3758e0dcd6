import sys
import os
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from modpanel.errors import MalformedImport
from modpanel.models import Decision, ExampleSource
from modpanel.services.importer import import_csv, import_rows, normalize_label, parse_csv, parse_rows
from modpanel.services.training import TrainingStore


def test_headerless_csv_with_unknown_label():
    examples = parse_csv("hello,approved\nworld,bogus_label\n")

    assert len(examples) == 2
    assert examples[0].content == "hello"
    assert examples[0].label == Decision.APPROVED
    assert examples[1].label == Decision.FLAGGED
    assert all(e.source == ExampleSource.CSV for e in examples)


def test_header_row_is_skipped():
    examples = parse_csv("Content,Label\nnice post,safe\n")

    assert len(examples) == 1
    assert examples[0].label == Decision.APPROVED


def test_quoted_field_with_comma_and_categories():
    examples = parse_csv('"Hello, world",reject,threats;spam\n')

    assert examples[0].content == "Hello, world"
    assert examples[0].label == Decision.REJECTED
    assert examples[0].categories == ["threats", "spam"]


def test_rows_without_content_are_skipped():
    examples = parse_csv(",approved\nok text,approve\n")
    assert [e.content for e in examples] == ["ok text"]


def test_missing_label_defaults_to_flagged():
    assert parse_csv("just some words\n")[0].label == Decision.FLAGGED


def test_zero_rows_is_malformed():
    with pytest.raises(MalformedImport) as exc:
        parse_csv("content,label\n")
    assert exc.value.count == 0

    with pytest.raises(MalformedImport):
        parse_csv("")


@pytest.mark.parametrize("raw,expected", [
    ("1", Decision.APPROVED),
    ("  POSITIVE ", Decision.APPROVED),
    ("0", Decision.FLAGGED),
    ("review", Decision.FLAGGED),
    ("-1", Decision.REJECTED),
    ("unsafe", Decision.REJECTED),
    ("whatever", Decision.FLAGGED),
])
def test_normalize_label(raw, expected):
    assert normalize_label(raw) == expected


def test_import_csv_adds_to_store():
    store = TrainingStore()
    count = import_csv(store, "a,approved\nb,rejected\nc,flag\n")

    assert count == 3
    assert len(store) == 3
    assert all(e.source == ExampleSource.CSV for e in store.examples)


def test_import_rows_accepts_tuples():
    store = TrainingStore()
    count = import_rows(store, [
        ("first", "approved", None),
        ("second", "negative", ["spam"]),
        ("", "approved", None),
    ])

    assert count == 2
    assert store.examples[1].label == Decision.REJECTED
    assert store.examples[1].categories == ["spam"]
    assert all(e.source == ExampleSource.MANUAL for e in store.examples)


def test_short_rows_are_skipped_not_fatal():
    examples = parse_rows([("good row", "approved"), ("lonely",), ()])

    assert len(examples) == 1
    assert examples[0].content == "good row"
    assert examples[0].label == Decision.APPROVED


def test_only_short_rows_is_malformed():
    with pytest.raises(MalformedImport) as exc:
        parse_rows([("lonely",)])
    assert exc.value.count == 0


def test_row_categories_string_is_split_on_semicolons():
    examples = parse_rows([
        ("you idiot", "flag", "harassment; spam"),
        ("buy now", "reject", ("spam",)),
        ("hello", "approve", ""),
    ])

    assert examples[0].categories == ["harassment", "spam"]
    assert examples[1].categories == ["spam"]
    assert examples[2].categories is None
