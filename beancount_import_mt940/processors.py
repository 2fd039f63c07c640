#!/usr/bin/env python3
"""Rule hooks that enrich ledger transactions after parsing.

Rules are read from YAML. Nested keys are joined with ``:`` into an
identifier, the leaves are lists of rules, and every rule maps `TXN` field
names to regular expressions::

    Expenses:
      Housing:
        Rent:
          - payee_name: Landlord
            reference: rent
            direction: debit

A rule fires when all of its patterns match (case-insensitive search) and,
if it names one, the booking direction agrees. The optional ``direction``
key takes ``debit``/``D`` or ``credit``/``C``. Per identifier only the first
matching rule is applied.

Hooks are plain callables on `TXN` and go into
`Mt940Importer.process_callbacks`.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from collections import defaultdict
from collections.abc import Sequence
from copy import deepcopy
from dataclasses import dataclass, fields

import yaml
from beancount.core import flags

from beancount_import_mt940.models import TXN, Direction, InducedPosting
from beancount_import_mt940.utils import flatten_dict

logger = logging.getLogger(__name__)

DIRECTION_KEY = "direction"
DIRECTION_ALIASES = {
    "d": Direction.DEBIT,
    "debit": Direction.DEBIT,
    "c": Direction.CREDIT,
    "credit": Direction.CREDIT,
}

MATCHABLE_FIELDS = tuple(
    f.name
    for f in fields(TXN)
    if f.name not in (DIRECTION_KEY, "induced_postings", "meta")
)
# Fields a named group in a MetaProcessor rule may overwrite.
REWRITABLE_FIELDS = (
    "posting_type",
    "reference",
    "payee_name",
    "payee_iban",
    "payee_bic",
    "sepa_reference",
)


@dataclass(frozen=True)
class Rule:
    patterns: tuple[tuple[str, re.Pattern], ...]
    direction: Direction | None = None

    @classmethod
    def from_dict(cls, raw: dict[str, str]) -> Rule:
        if not isinstance(raw, dict):
            raise TypeError(f"rule={raw!r} was not of type `dict`")
        patterns = []
        direction = None
        for field_name, regex in raw.items():
            if not isinstance(field_name, str):
                raise TypeError(f"{field_name=} was not of type `str`")
            if not isinstance(regex, str):
                raise TypeError(f"{regex=} for {field_name} was not of type `str`")
            if field_name == DIRECTION_KEY:
                try:
                    direction = DIRECTION_ALIASES[regex.strip().lower()]
                except KeyError:
                    raise ValueError(
                        f"Unknown direction {regex!r}, expected one of "
                        f"{sorted(DIRECTION_ALIASES)}"
                    ) from None
                continue
            if field_name not in MATCHABLE_FIELDS:
                raise ValueError(
                    f"Cannot match on {field_name!r}, rules may name "
                    f"{DIRECTION_KEY!r} or one of {list(MATCHABLE_FIELDS)}"
                )
            patterns.append((field_name, re.compile(regex, re.IGNORECASE)))
        return cls(patterns=tuple(patterns), direction=direction)

    def match(self, txn: TXN) -> list[re.Match] | None:
        """Returns one match per pattern, or None if the rule does not fire."""
        if self.direction is not None and txn.direction is not self.direction:
            return None
        matches = []
        for field_name, pattern in self.patterns:
            match = pattern.search(str(getattr(txn, field_name)))
            if not match:
                return None
            matches.append(match)
        return matches


def load_rule_sets(raw: dict | None) -> dict[str, tuple[Rule, ...]]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise TypeError(f"Rule file must hold a mapping, got {type(raw).__name__}")
    rule_sets = {}
    for identifier, rule_set in flatten_dict(raw).items():
        if not isinstance(rule_set, list):
            raise TypeError(f"{rule_set=} for {identifier=} was not of type `list`")
        rule_sets[identifier] = tuple(Rule.from_dict(rule) for rule in rule_set)
    return rule_sets


class TXNHook(ABC):
    def __init__(self, rule_sets: dict[str, Sequence[Rule]]) -> None:
        self.rule_sets = rule_sets

    @classmethod
    def from_dict(cls, raw: dict | None) -> TXNHook:
        return cls(rule_sets=load_rule_sets(raw))

    @classmethod
    def from_yaml(cls, fname) -> TXNHook:
        with open(fname) as f:
            hook = cls.from_dict(yaml.safe_load(f))
        logger.info(f"Loaded {len(hook.rule_sets)} rule sets from {fname}")
        return hook

    def __call__(self, original_txn: TXN) -> TXN:
        txn = deepcopy(original_txn)
        for identifier, rules in self.rule_sets.items():
            for rule in rules:
                matches = rule.match(txn)
                if matches is None:
                    continue
                logger.debug(f"{identifier} matched {txn.reference!r}")
                self.augment(identifier=identifier, matches=matches, txn=txn)
                break
        return txn

    @abstractmethod
    def augment(self, identifier: str, matches: list[re.Match], txn: TXN) -> None:
        ...


class AccountProcessor(TXNHook):
    """Adds a flagged counter posting on the matching account."""

    def augment(self, identifier: str, matches: list[re.Match], txn: TXN) -> None:
        txn.induced_postings.append(
            InducedPosting(flag=flags.FLAG_WARNING, account=identifier)
        )


class MetaProcessor(TXNHook):
    """Sets metadata and rewrites fields from named groups.

    ``key:value`` identifiers set ``meta[key] = VALUE``. A plain ``key``
    takes its value from the ``meta`` named groups of the matching patterns.
    Any other named group overwrites the `TXN` field of that name, which
    must be one of `REWRITABLE_FIELDS`.
    """

    def __init__(self, rule_sets: dict[str, Sequence[Rule]]) -> None:
        for identifier, rules in rule_sets.items():
            if identifier.count(":") > 1:
                raise ValueError(
                    f"{identifier=} is nested too deeply, use either "
                    "`key: [rules]` or `key: {value: [rules]}`"
                )
            for rule in rules:
                for _, pattern in rule.patterns:
                    for group in pattern.groupindex:
                        if group != "meta" and group not in REWRITABLE_FIELDS:
                            raise ValueError(
                                f"Named group {group!r} in {identifier} is neither "
                                f"'meta' nor one of {list(REWRITABLE_FIELDS)}"
                            )
        super().__init__(rule_sets)

    def augment(self, identifier: str, matches: list[re.Match], txn: TXN) -> None:
        key, _, meta_value = identifier.partition(":")
        if meta_value:
            meta_values = [meta_value]
        else:
            meta_values = [
                match["meta"]
                for match in matches
                if "meta" in match.re.groupindex and match["meta"] is not None
            ]

        rewrites = defaultdict(list)
        for match in matches:
            for group, value in match.groupdict().items():
                if group != "meta" and value is not None:
                    rewrites[group].append(value.strip())
        for field_name, values in rewrites.items():
            setattr(txn, field_name, " ".join(values))

        if meta_values:
            txn.meta[key] = " ".join(meta_values).upper()
