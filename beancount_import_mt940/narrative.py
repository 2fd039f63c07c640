#!/usr/bin/env python3
"""Decoding of :86: narratives in the German ``?NN`` sub-field layout.

A narrative looks like::

    166?00SEPA-UEBERWEISUNG?109310?20SVWZ+Rechnung 4711?21vom 02.01.?30
    DEUTDEFFXXX?31DE89370400440532013000?32Max Mustermann

``?20`` to ``?29`` carry the remittance text, cut every 27 characters
without regard to word boundaries. ``?31`` holds the counterparty IBAN,
``?32``/``?33`` the counterparty name.
"""

import logging
import re

from beancount_import_mt940.models import Narrative

logger = logging.getLogger(__name__)

LINE_BREAK_PATTERN = re.compile(r"(?:\r\n|[\n\v\f\r\x85\u2028\u2029])+")
TAN_PATTERN = re.compile(r"TAN: (\d{6})")
TAN_REDACTED = "TAN: xxxxxx"

IBAN_PATTERN = re.compile(r"\?31([A-Z]{2}\d{2}[A-Z0-9]{18})")
NAME_PATTERN = re.compile(r"\?32(.*?)(?:\?33(.*?)(?:\?|$)|$)")
POSTING_TEXT_PATTERN = re.compile(r"\?00([^?]{1,27})(?:\?|$)")
BIC_PATTERN = re.compile(r"\?30([A-Z]{6}[A-Z0-9]{2}(?:[A-Z0-9]{3})?)(?:\?|$)")
MEMO_PATTERN = re.compile(r"\?20(.*?)\?30")
SEPA_REFERENCE_PATTERN = re.compile(r"\b([A-Z]{2}\d{2}[A-Z0-9]{3}\d{1,30})\b")

MARKER_PATTERN = re.compile(r"\?2\d")

# Applied one after another over the whole memo. A pass consumes the
# characters around each marker it rewrites, so a marker whose neighbour
# was consumed by the same pass is left for a later one. Output depends on
# this order; keep it.
MARKER_RULES: tuple[tuple[re.Pattern, str], ...] = (
    # letter, letter
    (re.compile(r"([a-zA-Z])\?2\d([a-zA-Z])"), r"\1\2"),
    # digit, digit
    (re.compile(r"([0-9])\?2\d([0-9])"), r"\1\2"),
    # letter, digit
    (re.compile(r"([a-zA-Z])\?2\d([0-9])"), r"\1 \2"),
    # digit or nothing, letter
    (re.compile(r"([0-9])?\?2\d([a-zA-Z])"), r"\1 \2"),
    # lower, upper
    (re.compile(r"([a-z])\?2\d([A-Z])"), r"\1 \2"),
    # whitespace, digit
    (re.compile(r"(\s)\?2\d([0-9])"), r"\1\2"),
    # whitespace or nothing, letter
    (re.compile(r"(\s)?\?2\d([a-zA-Z])"), r"\1\2"),
    # letter, whitespace
    (re.compile(r"([a-zA-Z])\?2\d(\s)"), r"\1\2"),
    # digit or nothing, whitespace
    (re.compile(r"([0-9])?\?2\d(\s)"), r"\1\2"),
)


def clean_narrative(narrative: str) -> str:
    """Joins the narrative into one line and masks TAN codes."""
    cleaned = LINE_BREAK_PATTERN.sub("", narrative)
    return TAN_PATTERN.sub(TAN_REDACTED, cleaned)


def get_iban(narrative: str) -> str | None:
    match = IBAN_PATTERN.search(narrative)
    return match.group(1) if match else None


def get_name(narrative: str) -> str | None:
    """Returns the ?32 name, with the ?33 continuation appended if present."""
    match = NAME_PATTERN.search(narrative)
    if not match:
        return None
    name = match.group(1).replace("?", "")
    if match.group(2) is not None:
        name += match.group(2).replace("?", "")
    return name


def get_posting_text(narrative: str) -> str | None:
    match = POSTING_TEXT_PATTERN.search(narrative)
    return match.group(1) if match else None


def get_bic(narrative: str) -> str | None:
    match = BIC_PATTERN.search(narrative)
    return match.group(1) if match else None


def remove_markers(text: str) -> str:
    """Deletes ?20-?29 markers, inserting a space where words would merge.

    A marker between a letter and a digit (either way round), or between a
    lower case and an upper case letter that survived the first pass,
    becomes a space. Every other marker is dropped.
    """
    for pattern, replacement in MARKER_RULES:
        text = pattern.sub(replacement, text)
    # Deleting a marker can splice a new one together.
    while MARKER_PATTERN.search(text):
        text = MARKER_PATTERN.sub("", text)
    return text


def get_memo(narrative: str) -> str:
    """Returns the remittance text between ?20 and ?30.

    Narratives without such a block are returned unchanged.
    """
    match = MEMO_PATTERN.search(narrative)
    if not match:
        return narrative
    return remove_markers(match.group(1))


def get_sepa_reference(memo: str) -> str | None:
    if not memo or not memo.strip():
        return None
    match = SEPA_REFERENCE_PATTERN.search(memo)
    return match.group(1) if match else None


def decode_narrative(narrative: str) -> Narrative:
    cleaned = clean_narrative(narrative)
    memo = get_memo(cleaned)
    decoded = Narrative(
        memo=memo.rstrip(),
        iban=get_iban(cleaned),
        name=get_name(cleaned),
        sepa_reference=get_sepa_reference(memo),
        posting_text=get_posting_text(cleaned),
        bic=get_bic(cleaned),
    )
    logger.debug(f"Decoded {narrative=} to {decoded=}")
    return decoded
