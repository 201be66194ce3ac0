from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, Mapping

from werkzeug.security import generate_password_hash

from ..core.enums import Role
from .connection import DBConfig, DatabaseConnection

logger = logging.getLogger(__name__)

DEMO_USERS = (
    ("Admin Demo", "admin", "admin123", Role.ADMIN),
    ("Employee Demo", "employee", "employee123", Role.USER),
    ("Second Employee", "employee2", "employee123", Role.USER),
)


def _strip_create_db_and_use(sql: str) -> str:
    # schema.sql names a database; the configured one wins.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _strip_comments(sql: str) -> str:
    return re.sub(r"(?m)^\s*--.*$", "", sql)


def iter_sql_statements(sql: str) -> Iterable[str]:
    """Split a script on ``;`` outside quoted strings."""

    buf: list[str] = []
    quote: str | None = None
    escape = False

    for ch in sql:
        buf.append(ch)
        if escape:
            escape = False
            continue
        if ch == "\\":
            escape = True
            continue
        if ch in ("'", '"'):
            if quote is None:
                quote = ch
            elif quote == ch:
                quote = None
            continue
        if ch == ";" and quote is None:
            stmt = "".join(buf[:-1]).strip()
            buf.clear()
            if stmt:
                yield stmt

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _run_script(conn_factory: DatabaseConnection, sql: str) -> int:
    conn = conn_factory.connect()
    try:
        cur = conn.cursor()
        count = 0
        for stmt in iter_sql_statements(_strip_comments(_strip_create_db_and_use(sql))):
            cur.execute(stmt)
            count += 1
        conn.commit()
        return count
    finally:
        conn.close()


def ensure_database_exists(db_config: Mapping) -> None:
    config = DBConfig.from_mapping(db_config)
    conn = DatabaseConnection(config).connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{config.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: Mapping, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    conn_factory = DatabaseConnection(DBConfig.from_mapping(db_config))
    count = _run_script(conn_factory, Path(schema_path).read_text(encoding="utf-8"))
    logger.info("schema applied to %s (%s statements)", conn_factory.config.describe(), count)


def apply_seed_sql(db_config: Mapping, *, seed_path: str | Path) -> None:
    conn_factory = DatabaseConnection(DBConfig.from_mapping(db_config))
    count = _run_script(conn_factory, Path(seed_path).read_text(encoding="utf-8"))
    logger.info("seed applied to %s (%s statements)", conn_factory.config.describe(), count)


def ensure_demo_users(db_config: Mapping) -> None:
    """Create or reset the demo accounts with freshly hashed passwords."""

    conn = DatabaseConnection(DBConfig.from_mapping(db_config)).connect()
    try:
        cur = conn.cursor(dictionary=True)
        for full_name, username, password, role in DEMO_USERS:
            password_hash = generate_password_hash(password)
            cur.execute("SELECT user_id FROM users WHERE username=%s", (username,))
            if cur.fetchone():
                cur.execute(
                    "UPDATE users SET full_name=%s, password_hash=%s, role=%s, is_active=1 WHERE username=%s",
                    (full_name, password_hash, role.value, username),
                )
            else:
                cur.execute(
                    "INSERT INTO users (full_name, username, password_hash, role) VALUES (%s, %s, %s, %s)",
                    (full_name, username, password_hash, role.value),
                )
        conn.commit()
    finally:
        conn.close()
    logger.info("demo users ready: %s", ", ".join(u[1] for u in DEMO_USERS))


def list_tables(db_config: Mapping) -> list[str]:
    conn = DatabaseConnection(DBConfig.from_mapping(db_config)).connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
