from __future__ import annotations

import logging

from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

import app.models  # noqa: F401
from app.db.base import Base
from app.db.session import engine as default_engine
from app.services.settings_provider import build_default_settings_record, get_settings_record

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "users": {"id", "email", "role"},
    "classrooms": {"id", "room_number", "type", "capacity"},
    "class_groups": {"id", "course_code", "professor_id"},
    "timetable_entries": {"id", "class_group_id", "owner_id", "source_class_group_id", "day", "start_time", "end_time"},
    "reservations": {"id", "classroom_id", "reservation_date", "start_time", "end_time", "status"},
    "institution_settings": {"id", "max_days_in_advance", "max_reservations_per_week"},
}


def _assert_required_columns(engine: Engine) -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        missing_tables = [name for name in REQUIRED_COLUMNS if name not in table_names]
        if missing_tables:
            raise RuntimeError(f"Missing required tables: {', '.join(sorted(missing_tables))}")

        missing_columns: list[str] = []
        for table_name, required in REQUIRED_COLUMNS.items():
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            for column_name in sorted(required - existing):
                missing_columns.append(f"{table_name}.{column_name}")
        if missing_columns:
            raise RuntimeError(f"Missing required columns: {', '.join(missing_columns)}")


def _ensure_settings_row(engine: Engine) -> None:
    with Session(engine) as db:
        if get_settings_record(db) is None:
            db.add(build_default_settings_record())
            db.commit()
            logger.info("Seeded default reservation policy")


def ensure_schema(engine: Engine = default_engine) -> None:
    try:
        # Missing tables are created here; column changes go through alembic.
        Base.metadata.create_all(bind=engine)
        _assert_required_columns(engine)
        _ensure_settings_row(engine)
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Schema bootstrap failed")
        raise RuntimeError("Schema bootstrap failed") from exc
