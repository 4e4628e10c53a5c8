"""Sanity checks for Alembic migrations.

The scripts in ``backend/migrations/versions`` must form a single linear
upgrade path, and upgrading a blank database to head must produce the same
tables and unique receipt index the models declare.
"""

from __future__ import annotations

import re
from pathlib import Path

from alembic import command
from alembic.config import Config as AlembicConfig
from sqlalchemy import create_engine, inspect

from backend.database import Base


BASE_DIR = Path(__file__).resolve().parents[1]
VERSIONS_DIR = BASE_DIR / "backend" / "migrations" / "versions"


def _parse_revisions() -> dict[str, str | None]:
    revision_pattern = re.compile(r"^revision:\s*.*?['\"]([^'\"]+)['\"]", re.MULTILINE)
    down_revision_pattern = re.compile(r"^down_revision:\s*.*?=\s*(.+)$", re.MULTILINE)

    revisions: dict[str, str | None] = {}
    for path in VERSIONS_DIR.glob("*.py"):
        text = path.read_text()

        revision_match = revision_pattern.search(text)
        if not revision_match:
            raise AssertionError(f"Missing revision identifier in {path.name}")

        down_match = down_revision_pattern.search(text)
        down_revision = None
        if down_match:
            string_match = re.search(r"['\"]([^'\"]*)['\"]", down_match.group(1))
            if string_match and string_match.group(1):
                down_revision = string_match.group(1)

        revisions[revision_match.group(1)] = down_revision

    return revisions


def test_migrations_have_single_head() -> None:
    revisions = _parse_revisions()
    referenced = {down for down in revisions.values() if down}

    missing = referenced - set(revisions)
    assert not missing, f"Missing migration files referenced by down_revision: {missing}"

    heads = sorted(set(revisions) - referenced)
    assert len(heads) == 1, f"Multiple migration heads detected: {heads}"

    roots = [revision for revision, down in revisions.items() if down is None]
    assert len(roots) == 1, f"Expected one base migration, found {roots}"

    seen: set[str] = set()
    current: str | None = heads[0]
    while current and current not in seen:
        seen.add(current)
        current = revisions[current]

    unreachable = set(revisions) - seen
    assert not unreachable, f"Some migrations are unreachable from the head revision: {sorted(unreachable)}"


def test_upgrade_to_head_matches_models(tmp_path) -> None:
    db_path = tmp_path / "migrated.db"
    alembic_cfg = AlembicConfig(str(BASE_DIR / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(BASE_DIR / "backend" / "migrations"))
    alembic_cfg.set_main_option("sqlalchemy.url", f"sqlite+aiosqlite:///{db_path}")

    command.upgrade(alembic_cfg, "head")

    engine = create_engine(f"sqlite:///{db_path}")
    try:
        inspector = inspect(engine)
        tables = set(inspector.get_table_names()) - {"alembic_version"}
        assert tables == set(Base.metadata.tables)

        for table_name, table in Base.metadata.tables.items():
            migrated_columns = {column["name"] for column in inspector.get_columns(table_name)}
            assert migrated_columns == set(table.columns.keys()), table_name

        receipt_indexes = {
            index["name"]: index for index in inspector.get_indexes("survey_submission_receipts")
        }
        unique_index = receipt_indexes["uq_submission_receipts_user_survey_slot"]
        assert unique_index["unique"]
        assert unique_index["column_names"] == ["user_id", "survey_id", "submission_slot"]
    finally:
        engine.dispose()
