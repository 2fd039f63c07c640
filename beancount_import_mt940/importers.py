#!/usr/bin/env python3

from __future__ import annotations

import logging
import os
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date

import beangulp
from beancount.core import flags
from beancount.core.data import Transaction

from beancount_import_mt940.converter import Converter
from beancount_import_mt940.models import TXN, ParsedTransaction
from beancount_import_mt940.utils import make_transaction

logger = logging.getLogger(__name__)

ACCOUNT_ID_PATTERN = re.compile(r":25:([^\r\n]*)")
BLZ_ACCOUNT_PATTERN = re.compile(r"(\d{8})/(\d+)")


@dataclass
class Mt940Importer(beangulp.Importer):
    """Beancount importer for MT940 statements with ?NN structured :86: fields."""

    iban: str
    account_name: str
    currency: str = "EUR"
    converter: Converter = field(default_factory=Converter)
    process_callbacks: Sequence[Callable[[TXN], TXN | None]] = ()
    flag: str = flags.FLAG_OKAY
    file_extensions: Sequence[str] = (".sta", ".mta", ".txt", ".940", ".mt940")

    def _read(self, filepath: str) -> str:
        with open(filepath, encoding=self.converter.file_encoding) as f:
            return f.read()

    def matches_account_id(self, account_id: str) -> bool:
        """Accepts the IBAN itself or the German BLZ/Kontonummer form of it."""
        account_id = account_id.strip().replace(" ", "")
        if account_id == self.iban:
            return True
        match = BLZ_ACCOUNT_PATTERN.match(account_id)
        if not match:
            return False
        blz, number = match.groups()
        return (
            blz == self.iban[4:12]
            and number.lstrip("0") == self.iban[12:].lstrip("0")
        )

    def identify(self, filepath: str) -> bool:
        if not filepath.lower().endswith(tuple(self.file_extensions)):
            return False
        text = self._read(filepath)
        if ":61:" not in text:
            logger.debug(f"{filepath} contains no :61: tag")
            return False
        for account_id in ACCOUNT_ID_PATTERN.findall(text):
            logger.debug(f"Trying to match {account_id=} against {self.iban}")
            if self.matches_account_id(account_id):
                logger.info(f"{self.iban=} found in {filepath}.")
                return True
        return False

    def account(self, filepath: str) -> str:
        return self.account_name

    def parsed_to_txn(self, parsed: ParsedTransaction) -> TXN:
        return TXN.from_parsed(parsed, owner_iban=self.iban, currency=self.currency)

    def extract(self, filepath: str, existing=None) -> list[Transaction]:
        extracted_transactions = []
        for i, parsed in enumerate(self.converter.convert(filepath)):
            txn = self.parsed_to_txn(parsed)
            for cb in self.process_callbacks:
                # Hooks return a new TXN, plain callbacks may edit in place.
                txn = cb(txn) or txn
            logger.debug(f"Converted to {txn=}")

            transaction = make_transaction(
                account=self.account_name,
                txn=txn,
                fname=filepath,
                lineno=i + 1,
                flag=self.flag,
            )
            logger.info(f"New {transaction=}")
            extracted_transactions.append(transaction)
        return extracted_transactions

    def date(self, filepath: str) -> date | None:
        dates = [parsed.value_date for parsed in self.converter.convert(filepath)]
        return max(dates, default=None)

    def filename(self, filepath: str) -> str | None:
        match = re.search(r"\d{8}-(\d{7,10})-umsatz", os.path.basename(filepath))
        if match:
            return f"{match.group(1)}.mt940"
        return None
