from __future__ import annotations

import logging
import re
from datetime import date
from pathlib import Path
from typing import Iterable

import mysql.connector
from werkzeug.security import generate_password_hash

from ..companies.model import Company, OfficeLocation
from ..core.enums import Role
from ..users.model import User
from .connection import DBConfig

logger = logging.getLogger(__name__)

DEMO_COMPANY = "Demo Company"
DEMO_USERS = (
    ("Admin Demo", "admin", "admin123", "ADMIN"),
    ("Harini HR", "hr", "hr12345", "HR"),
    ("Arjun Employee", "employee", "employee123", "EMPLOYEE"),
    ("Isha Intern", "intern", "intern123", "INTERN"),
)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _iter_sql_statements(sql: str) -> Iterable[str]:
    # Splits on ';' outside quotes; drops '--' comment lines.
    buf: list[str] = []
    in_single = False
    in_double = False
    escape = False

    lines = [ln for ln in sql.splitlines() if not ln.lstrip().startswith("--")]
    for ch in "\n".join(lines):
        if escape:
            buf.append(ch)
            escape = False
        elif ch == "\\":
            buf.append(ch)
            escape = True
        elif ch == "'" and not in_double:
            in_single = not in_single
            buf.append(ch)
        elif ch == '"' and not in_single:
            in_double = not in_double
            buf.append(ch)
        elif ch == ";" and not in_single and not in_double:
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
        else:
            buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _connect(target: DBConfig, *, with_database: bool = True):
    kwargs = dict(host=target.host, port=target.port, user=target.user, password=target.password, use_pure=True)
    if with_database:
        kwargs["database"] = target.database
    return mysql.connector.connect(**kwargs)


def _run_script(db_config: dict, path: str | Path) -> int:
    target = DBConfig.from_dict(db_config)
    sql = _strip_create_db_and_use(Path(path).read_text(encoding="utf-8"))
    conn = _connect(target)
    count = 0
    try:
        cur = conn.cursor()
        for stmt in _iter_sql_statements(sql):
            cur.execute(stmt)
            count += 1
        conn.commit()
    finally:
        conn.close()
    return count


def ensure_database_exists(db_config: dict) -> None:
    target = DBConfig.from_dict(db_config)
    conn = _connect(target, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    count = _run_script(db_config, schema_path)
    logger.info("Applied %s (%d statements)", Path(schema_path).name, count)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    count = _run_script(db_config, seed_path)
    logger.info("Applied %s (%d statements)", Path(seed_path).name, count)


def ensure_demo_users(db_config: dict) -> None:
    """Create or refresh the demo accounts attached to the demo company."""
    conn = _connect(DBConfig.from_dict(db_config))
    try:
        cur = conn.cursor(dictionary=True)
        cur.execute("SELECT company_id FROM companies WHERE company_name=%s", (DEMO_COMPANY,))
        row = cur.fetchone()
        if not row:
            raise RuntimeError(f"Missing companies row for {DEMO_COMPANY!r}; run seed.sql first")
        company_id = int(row["company_id"])

        def upsert_user(full_name: str, username: str, password: str, role: str) -> None:
            password_hash = generate_password_hash(password)
            cur.execute("SELECT user_id FROM users WHERE username=%s", (username,))
            if cur.fetchone():
                cur.execute(
                    """
                    UPDATE users
                    SET full_name=%s, password_hash=%s, role=%s, company_id=%s, is_active=1
                    WHERE username=%s
                    """,
                    (full_name, password_hash, role, company_id, username),
                )
            else:
                cur.execute(
                    """
                    INSERT INTO users (company_id, full_name, username, password_hash, role)
                    VALUES (%s, %s, %s, %s, %s)
                    """,
                    (company_id, full_name, username, password_hash, role),
                )

        for full_name, username, password, role in DEMO_USERS:
            upsert_user(full_name, username, password, role)

        conn.commit()
    finally:
        conn.close()
    logger.info("Demo users ready for %s", DEMO_COMPANY)


def list_tables(db_config: dict) -> list[str]:
    conn = _connect(DBConfig.from_dict(db_config))
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()


def seed_memory_demo(users_repo, companies_repo) -> None:
    """Same demo company and accounts as seed.sql, for the memory backend."""
    company = companies_repo.add(
        Company(
            company_id=1,
            name=DEMO_COMPANY,
            office=OfficeLocation(latitude=12.9716, longitude=77.5946, radius_km=0.1, address="MG Road, Bengaluru"),
            timezone="Asia/Kolkata",
            holidays=frozenset({date(2026, 1, 26), date(2026, 8, 15)}),
        )
    )
    for user_id, (full_name, username, password, role) in enumerate(DEMO_USERS, start=1):
        users_repo.add(
            User(
                user_id=user_id,
                full_name=full_name,
                username=username,
                password_hash=generate_password_hash(password),
                role=Role(role),
                company_id=company.company_id,
            )
        )
        companies_repo.assign_user(user_id, company.company_id)
    logger.info("Memory backend seeded with %d demo users", len(DEMO_USERS))
