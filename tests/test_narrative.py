#!/usr/bin/env python3

import re

import pytest

from beancount_import_mt940 import narrative


@pytest.mark.parametrize(
    "text, expected",
    [
        # letter, letter
        ("Invoice?21Payment", "InvoicePayment"),
        ("Rech?21nung", "Rechnung"),
        # digit, digit
        ("12?2134", "1234"),
        # letter, digit
        ("Rechnung?21123", "Rechnung 123"),
        # digit, letter
        ("4711?22Miete", "4711 Miete"),
        # nothing before the marker once the letter pass consumed it
        ("a?21b?22C", "ab C"),
        ("a?21B?22C", "aB C"),
        # whitespace, digit
        ("Miete ?21123", "Miete 123"),
        # whitespace, letter; the digit pass takes it first and adds a space
        ("Miete ?21Januar", "Miete  Januar"),
        # letter, whitespace
        ("Miete?21 Januar", "Miete Januar"),
        # digit, whitespace
        ("2024?21 Januar", "2024 Januar"),
        # any character, letter
        ("EREF+?21ABC", "EREF+ ABC"),
        ("?21Foo", " Foo"),
        ("vom 02.01.?21Miete", "vom 02.01. Miete"),
        # any character, whitespace
        ("02.01.?21 Miete", "02.01. Miete"),
        # no rule applies
        ("Ende?29", "Ende"),
        ("x?2?213", "x"),
    ],
)
def test_remove_markers(text, expected):
    assert narrative.remove_markers(text) == expected


@pytest.mark.parametrize(
    "text",
    [
        "Invoice?21Payment",
        "SVWZ+Rechnung?21 4711 vom?2202.01.2024",
        "a?21b?22C?23d",
        "x?2?213",
        "nothing to do",
    ],
)
def test_remove_markers_is_idempotent(text):
    once = narrative.remove_markers(text)
    assert not re.search(r"\?2\d", once)
    assert narrative.remove_markers(once) == once


def test_remove_markers_leaves_other_markers():
    assert narrative.remove_markers("a?10b?21c") == "a?10bc"


@pytest.mark.parametrize(
    "text, expected",
    [
        ("?20Invoice?21Payment?30?31DE89370400440532013000", "InvoicePayment"),
        ("166?00GUTSCHRIFT?20Lohn?21 Januar?30DEUTDEFFXXX", "Lohn Januar"),
        ("?20first?30middle?30", "first"),
        ("Gutschrift ohne Unterfelder", "Gutschrift ohne Unterfelder"),
        ("?20no closing marker", "?20no closing marker"),
    ],
)
def test_get_memo(text, expected):
    assert narrative.get_memo(text) == expected


def test_clean_narrative_joins_lines():
    assert narrative.clean_narrative("?20Rech\nnung\r\n?21 vom?30") == "?20Rechnung?21 vom?30"


@pytest.mark.parametrize(
    "text, expected",
    [
        ("TAN: 482913", "TAN: xxxxxx"),
        ("Ueberweisung mit TAN: 482913 bestaetigt", "Ueberweisung mit TAN: xxxxxx bestaetigt"),
        ("TAN: 48\n2913", "TAN: xxxxxx"),
        ("TAN: 12345", "TAN: 12345"),
        ("TAN 482913", "TAN 482913"),
    ],
)
def test_clean_narrative_redacts_tan(text, expected):
    cleaned = narrative.clean_narrative(text)
    assert cleaned == expected
    assert not re.search(r"TAN: \d{6}", cleaned)


def test_tan_redacted_in_memo():
    decoded = narrative.decode_narrative("?20Online-Banking TAN: 482913?21 Auftrag?30")
    assert decoded.memo == "Online-Banking TAN: xxxxxx Auftrag"


@pytest.mark.parametrize(
    "text, expected",
    [
        ("?30DEUTDEFFXXX?31DE89370400440532013000?32Max", "DE89370400440532013000"),
        ("?31DE89370400440532013000", "DE89370400440532013000"),
        ("?31DE8937040044", None),
        ("DE89370400440532013000", None),
    ],
)
def test_get_iban(text, expected):
    assert narrative.get_iban(text) == expected


@pytest.mark.parametrize(
    "text, expected",
    [
        ("?32John?33Doe", "JohnDoe"),
        ("?31DE89370400440532013000?32Max Mustermann", "Max Mustermann"),
        ("?32ACME GmbH?33Niederlassung Berlin?34999", "ACME GmbHNiederlassung Berlin"),
        ("?32Erika?34Musterfrau", "Erika34Musterfrau"),
        ("?32", ""),
        ("?20no name here", None),
    ],
)
def test_get_name(text, expected):
    assert narrative.get_name(text) == expected


@pytest.mark.parametrize(
    "text, expected",
    [
        ("166?00SEPA-UEBERWEISUNG?109310?20x", "SEPA-UEBERWEISUNG"),
        ("?00LOHN GEHALT", "LOHN GEHALT"),
        ("?20no posting text", None),
    ],
)
def test_get_posting_text(text, expected):
    assert narrative.get_posting_text(text) == expected


@pytest.mark.parametrize(
    "text, expected",
    [
        ("?30DEUTDEFFXXX?31DE89", "DEUTDEFFXXX"),
        ("?30COBADEFF?31DE89", "COBADEFF"),
        ("?3010050000?31DE89", None),
    ],
)
def test_get_bic(text, expected):
    assert narrative.get_bic(text) == expected


@pytest.mark.parametrize(
    "memo, expected",
    [
        ("EREF+123 MREF+DE12ZZZ00000012345 CRED+X", "DE12ZZZ00000012345"),
        ("Miete Januar", None),
        ("", None),
        ("   ", None),
    ],
)
def test_get_sepa_reference(memo, expected):
    assert narrative.get_sepa_reference(memo) == expected


def test_decode_narrative():
    decoded = narrative.decode_narrative(
        "?20Invoice?21Payment?30?31DE89370400440532013000?32John?33Doe"
    )
    assert decoded.memo == "InvoicePayment"
    assert decoded.iban == "DE89370400440532013000"
    assert decoded.name == "JohnDoe"
    assert decoded.sepa_reference is None
    assert decoded.posting_text is None
    assert decoded.bic is None


def test_decode_narrative_without_memo_block():
    text = "Kartenzahlung Supermarkt 24.01."
    decoded = narrative.decode_narrative(text + "\n")
    assert decoded.memo == text
    assert decoded.iban is None
    assert decoded.name is None


def test_decode_narrative_sepa_reference_from_memo():
    decoded = narrative.decode_narrative(
        "105?00SEPA-LASTSCHRIFT?20EREF+4711 MREF+DE12Z?21ZZ00000012345 CRED+X?30"
    )
    assert decoded.memo == "EREF+4711 MREF+DE12ZZZ00000012345 CRED+X"
    assert decoded.sepa_reference == "DE12ZZZ00000012345"
    assert decoded.posting_text == "SEPA-LASTSCHRIFT"
