from __future__ import annotations

import re
from pathlib import Path
from typing import Iterator, Optional

from werkzeug.security import generate_password_hash

from ..common.logging import get_logger
from .connection import DatabaseConnection, DBConfig
from .mysql_base import db_cursor

logger = get_logger(__name__)

_DB_DIRECTIVE = re.compile(r"(?im)^\s*(CREATE\s+DATABASE|USE)\b.*?;\s*$")


def _strip_create_db_and_use(sql: str) -> str:
    # The target database comes from DB_CONFIG, not from the script.
    return _DB_DIRECTIVE.sub("", sql)


def iter_sql_statements(sql: str) -> Iterator[str]:
    """Yield the statements of ``sql``, skipping ``--`` comment lines.

    Semicolons inside quoted literals do not end a statement.
    """
    lines = [line for line in sql.splitlines() if not line.lstrip().startswith("--")]
    text = "\n".join(lines)

    start = 0
    quote: Optional[str] = None
    i = 0
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 1
            elif ch == quote:
                quote = None
        elif ch in ("'", '"', "`"):
            quote = ch
        elif ch == ";":
            stmt = text[start:i].strip()
            if stmt:
                yield stmt
            start = i + 1
        i += 1

    tail = text[start:].strip()
    if tail:
        yield tail


def _run_script(conn_factory: DatabaseConnection, sql: str) -> int:
    statements = list(iter_sql_statements(_strip_create_db_and_use(sql)))
    with db_cursor(conn_factory, dictionary=False) as (_, cur):
        for stmt in statements:
            cur.execute(stmt)
    return len(statements)


def ensure_database_exists(config: DBConfig) -> None:
    conn = DatabaseConnection(config).connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{config.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    config = DBConfig.from_dict(db_config)
    ensure_database_exists(config)
    count = _run_script(DatabaseConnection(config), Path(schema_path).read_text(encoding="utf-8"))
    logger.info("Applied %s statements from %s to %s", count, schema_path, config.describe())


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    config = DBConfig.from_dict(db_config)
    count = _run_script(DatabaseConnection(config), Path(seed_path).read_text(encoding="utf-8"))
    logger.info("Applied %s seed statements to %s", count, config.describe())


DEMO_USERS = (
    # full_name, username, password, role, employee_code
    ("Admin Demo", "admin", "admin123", "admin", "ADM-001"),
    ("Gerente Demo", "gerente", "gerente123", "manager", "GER-001"),
    ("Empleado Demo", "empleado", "empleado123", "employee", "EMP-001"),
)


def ensure_demo_users(db_config: dict) -> None:
    """Create (or reset the password of) the demo accounts of the Demo organization."""
    with db_cursor(DatabaseConnection(DBConfig.from_dict(db_config))) as (_, cur):
        cur.execute("SELECT organization_id FROM organizations WHERE name=%s", ("Demo",))
        org = cur.fetchone()
        if not org:
            raise RuntimeError("Missing Demo organization, apply seed.sql first")
        org_id = int(org["organization_id"])

        cur.execute("SELECT shift_id FROM shifts WHERE organization_id=%s AND shift_name=%s", (org_id, "Diurno"))
        shift = cur.fetchone()
        shift_id = int(shift["shift_id"]) if shift else None

        for full_name, username, password, role, code in DEMO_USERS:
            cur.execute(
                """
                INSERT INTO users (organization_id, full_name, username, password_hash, role, employee_code, shift_id)
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                ON DUPLICATE KEY UPDATE
                    organization_id=VALUES(organization_id), full_name=VALUES(full_name),
                    password_hash=VALUES(password_hash), role=VALUES(role),
                    employee_code=VALUES(employee_code), shift_id=VALUES(shift_id), is_active=1
                """,
                (org_id, full_name, username, generate_password_hash(password), role, code, shift_id),
            )
            logger.info("Demo user ready: %s (%s)", username, role)


def list_tables(db_config: dict) -> list[str]:
    with db_cursor(DatabaseConnection(DBConfig.from_dict(db_config)), dictionary=False) as (_, cur):
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
