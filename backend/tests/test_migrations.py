"""Tests for the SQL migration runner."""

import pytest
from sqlalchemy import create_engine, inspect, text

from foodie.services.migration_service import get_migration_status, parse_sql_statements, run_migrations


# ============================================================================
# Statement parsing
# ============================================================================

def test_splits_on_semicolons_and_keeps_trailing_statement():
    sql = "CREATE TABLE a (id INT);\nINSERT INTO a VALUES (1);\nSELECT 1"
    assert parse_sql_statements(sql) == [
        "CREATE TABLE a (id INT)",
        "INSERT INTO a VALUES (1)",
        "SELECT 1",
    ]


def test_semicolons_inside_quotes_are_kept():
    sql = "INSERT INTO notes VALUES ('a; b', 'it''s; fine');\nINSERT INTO \"odd;name\" VALUES (1);"
    assert parse_sql_statements(sql) == [
        "INSERT INTO notes VALUES ('a; b', 'it''s; fine')",
        "INSERT INTO \"odd;name\" VALUES (1)",
    ]


def test_comments_are_dropped():
    sql = (
        "-- leading comment; with semicolon\n"
        "SELECT 1; /* block; comment */\n"
        "SELECT 2; -- trailing\n"
    )
    assert parse_sql_statements(sql) == ["SELECT 1", "SELECT 2"]


def test_dollar_quoted_bodies_are_not_split():
    sql = (
        "DO $$ BEGIN PERFORM 1; PERFORM 2; END $$;\n"
        "CREATE FUNCTION f() RETURNS int AS $body$ SELECT 1; $body$ LANGUAGE sql;"
    )
    statements = parse_sql_statements(sql)
    assert len(statements) == 2
    assert statements[0] == "DO $$ BEGIN PERFORM 1; PERFORM 2; END $$"
    assert "$body$ SELECT 1; $body$" in statements[1]


def test_empty_input():
    assert parse_sql_statements("") == []
    assert parse_sql_statements("  ;\n-- nothing\n;") == []


# ============================================================================
# Runner
# ============================================================================

@pytest.fixture
def migration_engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'migrations.db'}")
    yield engine
    engine.dispose()


@pytest.fixture
def migrations_dir(tmp_path):
    directory = tmp_path / "migrations"
    directory.mkdir()
    (directory / "001_create_pets.sql").write_text(
        "CREATE TABLE pets (id INTEGER PRIMARY KEY, name TEXT);\n"
        "INSERT INTO pets (name) VALUES ('Rex; the dog');\n"
    )
    (directory / "002_add_owner.sql").write_text("ALTER TABLE pets ADD COLUMN owner TEXT;")
    return directory


def test_status_before_running(migration_engine, migrations_dir):
    status = get_migration_status(migration_engine, str(migrations_dir))
    assert [m["version"] for m in status["migrations"]] == ["001_create_pets", "002_add_owner"]
    assert all(m["status"] == "pending" for m in status["migrations"])
    assert status["summary"] == {
        "total": 2,
        "completed": 0,
        "pending": 2,
        "schema_migrations_exists": False,
    }


def test_run_applies_pending_in_order(migration_engine, migrations_dir):
    result = run_migrations(migration_engine, str(migrations_dir))

    assert result["success"] is True
    assert [m["version"] for m in result["executed"]] == ["001_create_pets", "002_add_owner"]
    assert result["executed"][0]["statements"] == 2
    assert result["message"] == "Applied 2 migration(s)"

    columns = {c["name"] for c in inspect(migration_engine).get_columns("pets")}
    assert columns == {"id", "name", "owner"}
    with migration_engine.connect() as conn:
        assert conn.execute(text("SELECT name FROM pets")).scalar() == "Rex; the dog"

    status = get_migration_status(migration_engine, str(migrations_dir))
    assert status["summary"]["completed"] == 2
    assert all(m["executed_at"] is not None for m in status["migrations"])


def test_second_run_has_nothing_to_do(migration_engine, migrations_dir):
    run_migrations(migration_engine, str(migrations_dir))
    result = run_migrations(migration_engine, str(migrations_dir))
    assert result["success"] is True
    assert result["executed"] == []
    assert result["message"] == "No pending migrations"


def test_failure_stops_and_leaves_later_files_pending(migration_engine, migrations_dir):
    (migrations_dir / "002_add_owner.sql").write_text("ALTER TABLE missing_table ADD COLUMN owner TEXT;")
    (migrations_dir / "003_later.sql").write_text("CREATE TABLE later (id INTEGER);")

    result = run_migrations(migration_engine, str(migrations_dir))

    assert result["success"] is False
    assert result["failed"] == "002_add_owner"
    assert [m["version"] for m in result["executed"]] == ["001_create_pets"]
    assert result["error"]

    statuses = {m["version"]: m["status"] for m in get_migration_status(migration_engine, str(migrations_dir))["migrations"]}
    assert statuses == {"001_create_pets": "completed", "002_add_owner": "pending", "003_later": "pending"}
    assert not inspect(migration_engine).has_table("later")


def test_bundled_migrations_apply_to_fresh_schema(db):
    from foodie.core.config import settings

    result = run_migrations(db.get_bind(), settings.MIGRATIONS_DIR)
    assert result["success"] is True, result["error"]
    assert {m["version"] for m in result["executed"]} >= {"001_create_schema_migrations"}
