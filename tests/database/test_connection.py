from __future__ import annotations

import mysql.connector

from hr_workflow.database.connection import DBConfig, DatabaseConnection


def test_from_dict_fills_defaults():
    cfg = DBConfig.from_dict({"host": "db", "port": "3307"})
    assert cfg == DBConfig(host="db", port=3307, user="root", password="", database="hr_workflow")


def test_each_factory_connects_with_its_own_settings(monkeypatch):
    seen = []
    monkeypatch.setattr(mysql.connector, "connect", lambda **kwargs: seen.append(kwargs) or object())

    first = DatabaseConnection(DBConfig.from_dict({"host": "primary", "database": "hr_a"}))
    second = DatabaseConnection(DBConfig.from_dict({"host": "replica", "database": "hr_b"}))
    first.connect()
    second.connect()

    assert [(c["host"], c["database"]) for c in seen] == [("primary", "hr_a"), ("replica", "hr_b")]
