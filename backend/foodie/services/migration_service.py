"""
Migration Service
Applies the numbered SQL files in settings.MIGRATIONS_DIR.

Each file (e.g. 002_search_indexes.sql) runs once, in name order, inside its
own transaction. Applied files are recorded in schema_migrations together
with how long they took.
"""

import logging
import time
from pathlib import Path
from typing import List, Optional

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from foodie.core.config import settings
from foodie.models import SchemaMigration


logger = logging.getLogger("migrations")


def parse_sql_statements(sql_content: str) -> List[str]:
    """
    Parse SQL content into individual statements.

    Splits on semicolons, except inside:
    - single or double quoted literals ('' escapes a quote)
    - dollar-quoted bodies ($$ ... $$ or $tag$ ... $tag$)
    - -- line comments and /* */ block comments, which are dropped
    """
    statements = []
    current = []
    i = 0
    length = len(sql_content)
    quote = None  # "'" or '"' while inside a literal
    dollar_tag = None  # e.g. "$$" while inside a dollar-quoted body

    while i < length:
        char = sql_content[i]

        if dollar_tag:
            if sql_content.startswith(dollar_tag, i):
                current.append(dollar_tag)
                i += len(dollar_tag)
                dollar_tag = None
            else:
                current.append(char)
                i += 1
            continue

        if quote:
            current.append(char)
            if char == quote:
                # Doubled quote is an escaped quote, not the end
                if i + 1 < length and sql_content[i + 1] == quote:
                    current.append(quote)
                    i += 1
                else:
                    quote = None
            i += 1
            continue

        if sql_content.startswith("--", i):
            newline = sql_content.find("\n", i)
            i = length if newline == -1 else newline
            continue

        if sql_content.startswith("/*", i):
            end = sql_content.find("*/", i + 2)
            i = length if end == -1 else end + 2
            continue

        if char in ("'", '"'):
            quote = char
            current.append(char)
            i += 1
            continue

        if char == "$":
            end = sql_content.find("$", i + 1)
            tag = sql_content[i:end + 1] if end != -1 else ""
            if tag and (tag == "$$" or tag[1:-1].replace("_", "").isalnum()) and not tag[1].isdigit():
                dollar_tag = tag
                current.append(tag)
                i = end + 1
                continue

        if char == ";":
            statement = "".join(current).strip()
            if statement:
                statements.append(statement)
            current = []
            i += 1
            continue

        current.append(char)
        i += 1

    trailing = "".join(current).strip()
    if trailing:
        statements.append(trailing)
    return statements


def migration_files(migrations_dir: Optional[str] = None) -> List[Path]:
    directory = Path(migrations_dir or settings.MIGRATIONS_DIR)
    if not directory.is_dir():
        logger.warning(f"Migrations directory not found: {directory}")
        return []
    return sorted(directory.glob("*.sql"), key=lambda p: p.name)


def _schema_migrations_exists(engine: Engine) -> bool:
    return inspect(engine).has_table(SchemaMigration.__tablename__)


def _applied(engine: Engine) -> dict:
    if not _schema_migrations_exists(engine):
        return {}
    with engine.connect() as conn:
        rows = conn.execute(SchemaMigration.__table__.select()).all()
    return {row.version: row for row in rows}


def get_migration_status(engine: Engine, migrations_dir: Optional[str] = None) -> dict:
    """Every migration file with its completed/pending state."""
    applied = _applied(engine)
    items = []
    for path in migration_files(migrations_dir):
        row = applied.get(path.stem)
        items.append({
            "version": path.stem,
            "filename": path.name,
            "status": "completed" if row else "pending",
            "executed_at": row.executed_at if row else None,
            "execution_time_ms": row.execution_time_ms if row else None,
        })

    completed = sum(1 for item in items if item["status"] == "completed")
    return {
        "migrations": items,
        "summary": {
            "total": len(items),
            "completed": completed,
            "pending": len(items) - completed,
            "schema_migrations_exists": _schema_migrations_exists(engine),
        },
    }


def run_migrations(engine: Engine, migrations_dir: Optional[str] = None) -> dict:
    """
    Execute pending migration files in order.

    Stops at the first failing file; its transaction is rolled back and
    files after it are left pending.
    """
    SchemaMigration.__table__.create(bind=engine, checkfirst=True)
    applied = _applied(engine)
    executed = []

    for path in migration_files(migrations_dir):
        version = path.stem
        if version in applied:
            continue

        statements = parse_sql_statements(path.read_text(encoding="utf-8"))
        started = time.perf_counter()
        try:
            with engine.begin() as conn:
                for statement in statements:
                    conn.exec_driver_sql(statement)
                elapsed_ms = int((time.perf_counter() - started) * 1000)
                conn.execute(SchemaMigration.__table__.insert().values(
                    version=version,
                    execution_time_ms=elapsed_ms,
                ))
        except Exception as e:
            logger.error(f"Migration {version} failed: {e}")
            return {
                "success": False,
                "executed": executed,
                "message": f"Migration {version} failed after {len(executed)} successful migration(s)",
                "failed": version,
                "error": str(e),
            }

        logger.info(f"Applied migration {version} ({len(statements)} statements, {elapsed_ms} ms)")
        executed.append({"version": version, "statements": len(statements), "execution_time_ms": elapsed_ms})

    message = f"Applied {len(executed)} migration(s)" if executed else "No pending migrations"
    return {"success": True, "executed": executed, "message": message, "failed": None, "error": None}
