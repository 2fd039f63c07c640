#!/usr/bin/env python3

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Literal


class InputNotFound(FileNotFoundError):
    """The statement file does not exist or cannot be read."""


class MalformedDetailLine(ValueError):
    """A :61: segment does not follow the detail line grammar."""

    def __init__(self, raw: str, reason: str = "no match") -> None:
        self.raw = raw
        super().__init__(f"Cannot parse detail line {raw!r}: {reason}")


class Direction(Enum):
    DEBIT = "D"
    CREDIT = "C"

    @classmethod
    def from_mark(cls, mark: str) -> Direction:
        return cls.DEBIT if mark == "D" else cls.CREDIT


@dataclass(frozen=True)
class Narrative:
    memo: str
    iban: str | None = None
    name: str | None = None
    sepa_reference: str | None = None
    posting_text: str | None = None
    bic: str | None = None


@dataclass(frozen=True)
class ParsedTransaction:
    """One booked transaction recovered from a :61:/:86: pair.

    Counterparty identity is stored on the payer side for credits and on the
    recipient side for debits, never on both.
    """

    value_date: date
    amount: Decimal
    direction: Direction
    memo: str
    sepa_reference: str | None = None
    posting_text: str | None = None
    counterparty_bic: str | None = None
    payer_iban: str | None = None
    payer_name: str | None = None
    recipient_iban: str | None = None
    recipient_name: str | None = None

    def __post_init__(self) -> None:
        has_payer = self.payer_iban is not None or self.payer_name is not None
        has_recipient = (
            self.recipient_iban is not None or self.recipient_name is not None
        )
        if has_payer and has_recipient:
            raise ValueError("A transaction cannot carry payer and recipient")
        if has_payer and self.direction is Direction.DEBIT:
            raise ValueError("Debits name a recipient, not a payer")
        if has_recipient and self.direction is Direction.CREDIT:
            raise ValueError("Credits name a payer, not a recipient")

    @property
    def counterparty_iban(self) -> str | None:
        if self.direction is Direction.DEBIT:
            return self.recipient_iban
        return self.payer_iban

    @property
    def counterparty_name(self) -> str | None:
        if self.direction is Direction.DEBIT:
            return self.recipient_name
        return self.payer_name

    def to_dict(self) -> dict[str, Any]:
        return {
            "transactionDate": self.value_date.isoformat(),
            "transactionAmount": self.amount,
            "iban": self.counterparty_iban,
            "description": self.memo,
        }

    def to_json(self, **kwargs) -> str:
        return json.dumps(self.to_dict(), default=float, **kwargs)


@dataclass
class InducedPosting:
    flag: Literal["*"] | Literal["!"]
    account: str


@dataclass
class TXN:
    owner_iban: str
    date: date
    posting_type: str
    reference: str
    payee_name: str
    payee_iban: str
    payee_bic: str
    amount: Decimal
    currency: str
    sepa_reference: str = ""
    direction: Direction = Direction.CREDIT
    induced_postings: list[InducedPosting] = field(default_factory=list)
    meta: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_parsed(
        cls, parsed: ParsedTransaction, owner_iban: str, currency: str
    ) -> TXN:
        """Flattens a parsed record into the string fields the rule hooks match on."""
        return cls(
            owner_iban=owner_iban,
            date=parsed.value_date,
            posting_type=parsed.posting_text or "",
            reference=parsed.memo,
            payee_name=parsed.counterparty_name or "",
            payee_iban=parsed.counterparty_iban or "",
            payee_bic=parsed.counterparty_bic or "",
            amount=parsed.amount,
            currency=currency,
            sepa_reference=parsed.sepa_reference or "",
            direction=parsed.direction,
        )
