#!/usr/bin/env python3

from beancount.core.amount import Amount
from beancount.core.data import EMPTY_SET, Posting, Transaction, new_metadata

from beancount_import_mt940.models import TXN

# TXN field -> transaction meta key, set only when the field is non-empty.
META_FIELDS = {
    "payee_iban": "iban",
    "payee_bic": "bic",
    "sepa_reference": "sepa_reference",
    "posting_type": "posting_text",
}


def make_postings(account: str, txn: TXN) -> list[Posting]:
    """The booked amount on `account`, then one open posting per induced one."""
    own = Posting(
        account=account,
        units=Amount(txn.amount, txn.currency),
        cost=None,
        price=None,
        flag=None,
        meta=None,
    )
    return [own] + [
        Posting(
            account=induced.account,
            units=None,
            cost=None,
            price=None,
            flag=induced.flag,
            meta=None,
        )
        for induced in txn.induced_postings
    ]


def make_meta(txn: TXN) -> dict[str, str]:
    meta = {
        key: getattr(txn, field_name)
        for field_name, key in META_FIELDS.items()
        if getattr(txn, field_name)
    }
    meta.update(txn.meta)
    return meta


def make_transaction(
    account: str, txn: TXN, fname: str, lineno: int, flag: str
) -> Transaction:
    # Narratives without a memo block still carry their ?00 posting text.
    return Transaction(
        meta=new_metadata(filename=fname, lineno=lineno, kvlist=make_meta(txn)),
        date=txn.date,
        flag=flag,
        payee=txn.payee_name or None,
        narration=txn.reference or txn.posting_type,
        tags=EMPTY_SET,
        links=EMPTY_SET,
        postings=make_postings(account, txn),
    )


def flatten_dict(nested: dict, separator: str = ":", prefix: str = "") -> dict:
    """Joins nested mapping keys, ``{"a": {"b": 1}}`` -> ``{"a:b": 1}``."""
    flat = {}
    for key, value in nested.items():
        if not isinstance(key, str):
            raise TypeError(f"{key=} was not of type `str`")
        name = f"{prefix}{separator}{key}" if prefix else key
        if isinstance(value, dict):
            flat.update(flatten_dict(value, separator, name))
        else:
            flat[name] = value
    return flat
