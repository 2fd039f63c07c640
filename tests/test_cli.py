#!/usr/bin/env python3

import json

from tests.utils import make_narrative, make_statement

from beancount_import_mt940 import cli


def test_main_prints_json(tmp_path, capsys):
    file = tmp_path / "statement.sta"
    file.write_text(
        make_statement(
            [
                (
                    "240115D0000123456,78",
                    "?20Invoice?21Payment?30?31DE89370400440532013000?32John?33Doe",
                ),
                ("ABCDEF", make_narrative(["skipped"])),
                ("240116C12,00", "Gutschrift"),
            ]
        )
    )
    assert cli.main([str(file)]) == 0
    assert json.loads(capsys.readouterr().out) == [
        {
            "transactionDate": "2024-01-15",
            "transactionAmount": -123456.78,
            "iban": "DE89370400440532013000",
            "description": "InvoicePayment",
        },
        {
            "transactionDate": "2024-01-16",
            "transactionAmount": 12.0,
            "iban": None,
            "description": "Gutschrift",
        },
    ]


def test_main_missing_file(tmp_path, capsys):
    assert cli.main([str(tmp_path / "missing.sta")]) == 1
    assert capsys.readouterr().out == ""
