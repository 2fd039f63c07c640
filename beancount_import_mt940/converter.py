#!/usr/bin/env python3

import logging
import os
import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from beancount_import_mt940.models import (
    Direction,
    InputNotFound,
    MalformedDetailLine,
    ParsedTransaction,
)
from beancount_import_mt940.narrative import decode_narrative
from beancount_import_mt940.tags import extract_pairs

logger = logging.getLogger(__name__)

DETAIL_PATTERN = re.compile(r"(\d{6})(\d{4})?([A-Z])([A-Z]{1,2})?(\d+,\d+)?")


@dataclass(frozen=True)
class DetailLine:
    value_date: date
    entry_date: str | None
    direction: Direction
    sub_type: str | None
    amount: Decimal


def parse_value_date(token: str, century_pivot: int = 50) -> date:
    """Parses YYMMDD. Years below `century_pivot` are 20YY, the rest 19YY."""
    year, month, day = int(token[:2]), int(token[2:4]), int(token[4:6])
    year += 2000 if year < century_pivot else 1900
    try:
        return date(year, month, day)
    except ValueError as e:
        raise MalformedDetailLine(token, reason=str(e)) from e


def parse_amount(amount: str) -> Decimal:
    """Converts the comma decimal separator of MT940 amounts."""
    return Decimal(amount.replace(",", "."))


def parse_detail_line(detail: str, century_pivot: int = 50) -> DetailLine:
    match = DETAIL_PATTERN.search(detail)
    if not match:
        raise MalformedDetailLine(detail)
    date_token, entry_date, mark, sub_type, amount = match.groups()
    if amount is None:
        raise MalformedDetailLine(detail, reason="no amount")

    direction = Direction.from_mark(mark)
    value = parse_amount(amount)
    if direction is Direction.DEBIT:
        value = -value
    return DetailLine(
        value_date=parse_value_date(date_token, century_pivot=century_pivot),
        entry_date=entry_date,
        direction=direction,
        sub_type=sub_type,
        amount=value,
    )


@dataclass
class Converter:
    """Converts MT940 statements into `ParsedTransaction` records."""

    century_pivot: int = 50
    file_encoding: str = "ISO-8859-1"

    def convert(self, path: str | os.PathLike) -> list[ParsedTransaction]:
        if not os.path.isfile(path) or not os.access(path, os.R_OK):
            raise InputNotFound(f"No readable statement file at {path}")
        with open(path, encoding=self.file_encoding) as f:
            text = f.read()
        rows = self.convert_text(text)
        logger.info(f"Converted {len(rows)} transactions from {path}")
        return rows

    def convert_text(self, text: str) -> list[ParsedTransaction]:
        rows = []
        for detail, narrative in extract_pairs(text):
            row = self.convert_to_row(detail, narrative)
            if row is not None:
                rows.append(row)
        return rows

    def convert_to_row(self, detail: str, narrative: str) -> ParsedTransaction | None:
        try:
            detail_line = parse_detail_line(detail, century_pivot=self.century_pivot)
        except MalformedDetailLine as e:
            logger.warning(f"Skipping transaction: {e}")
            return None

        decoded = decode_narrative(narrative)
        if detail_line.direction is Direction.DEBIT:
            identity = dict(recipient_iban=decoded.iban, recipient_name=decoded.name)
        else:
            identity = dict(payer_iban=decoded.iban, payer_name=decoded.name)

        row = ParsedTransaction(
            value_date=detail_line.value_date,
            amount=detail_line.amount,
            direction=detail_line.direction,
            memo=decoded.memo,
            sepa_reference=decoded.sepa_reference,
            posting_text=decoded.posting_text,
            counterparty_bic=decoded.bic,
            **identity,
        )
        logger.debug(f"Converted {detail=} to {row=}")
        return row
