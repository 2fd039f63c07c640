#!/usr/bin/env python3

import random
import string
from collections.abc import Sequence

BLZ = "10050000"
ACCOUNT_NUMBER = "1234567890"
OWNER_IBAN = "DE89" + BLZ + ACCOUNT_NUMBER


def random_string(size: int, letters: bool = False, digits: bool = False):
    population = ""
    if letters:
        population += string.ascii_uppercase
    if digits:
        population += string.digits
    return "".join(random.choices(population=population, k=size))


def fake_iban():
    return "DE" + random_string(size=20, digits=True)


def make_narrative(
    memo_parts: Sequence[str] = (),
    iban: str | None = None,
    name: str | None = None,
    name_continued: str | None = None,
    posting_text: str = "SEPA-UEBERWEISUNG",
    bic: str = "DEUTDEFFXXX",
) -> str:
    narrative = f"166?00{posting_text}?109310"
    for i, part in enumerate(memo_parts):
        narrative += f"?2{i}{part}"
    narrative += f"?30{bic}"
    if iban is not None:
        narrative += f"?31{iban}"
    if name is not None:
        narrative += f"?32{name}"
    if name_continued is not None:
        narrative += f"?33{name_continued}"
    return narrative


def make_statement(
    pairs: Sequence[tuple[str, str]], account_id: str = f"{BLZ}/{ACCOUNT_NUMBER}"
) -> str:
    lines = [
        ":20:STARTUMSE",
        f":25:{account_id}",
        ":28C:00001/001",
        ":60F:C240101EUR1000,00",
    ]
    for detail, narrative in pairs:
        lines.append(f":61:{detail}")
        lines.append(f":86:{narrative}")
    lines.append(":62F:C240131EUR1000,00")
    lines.append("-")
    return "\n".join(lines) + "\n"
