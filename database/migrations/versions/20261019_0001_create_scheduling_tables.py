"""create scheduling tables

Revision ID: 20261019_0001
Revises: None
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


user_role_enum = sa.Enum("admin", "professor", "student", name="user_role")
classroom_type_enum = sa.Enum("lecture", "lab", "seminar", "amphitheater", name="classroom_type")
weekday_enum = sa.Enum("monday", "tuesday", "wednesday", "thursday", "friday", name="weekday")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("role", user_role_enum, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "classrooms",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("room_number", sa.String(length=50), nullable=False),
        sa.Column("type", classroom_type_enum, nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("features", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_classrooms_room_number", "classrooms", ["room_number"], unique=True)

    op.create_table(
        "class_groups",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("course_code", sa.String(length=50), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("branch_id", sa.String(length=36), nullable=True),
        sa.Column("academic_year", sa.String(length=20), nullable=True),
        sa.Column("semester", sa.String(length=20), nullable=True),
        sa.Column("professor_id", sa.String(length=36), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_class_groups_course_code", "class_groups", ["course_code"])
    op.create_index("ix_class_groups_professor_id", "class_groups", ["professor_id"])

    op.create_table(
        "class_group_students",
        sa.Column(
            "class_group_id",
            sa.String(length=36),
            sa.ForeignKey("class_groups.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("student_id", sa.String(length=36), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    )

    op.create_table(
        "timetable_entries",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "class_group_id",
            sa.String(length=36),
            sa.ForeignKey("class_groups.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("owner_id", sa.String(length=36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=True),
        sa.Column("source_class_group_id", sa.String(length=36), nullable=True),
        sa.Column("day", weekday_enum, nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("instructor", sa.String(length=200), nullable=True),
        sa.Column("location", sa.String(length=200), nullable=True),
        sa.Column("color", sa.String(length=20), nullable=False, server_default="#6366f1"),
        sa.Column("entry_type", sa.String(length=50), nullable=False, server_default="Lecture"),
        sa.Column("subject_id", sa.String(length=36), nullable=True),
        sa.Column("subject_name", sa.String(length=200), nullable=True),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_timetable_entries_class_group_id", "timetable_entries", ["class_group_id"])
    op.create_index("ix_timetable_entries_owner_id", "timetable_entries", ["owner_id"])
    op.create_index("ix_timetable_entries_source_class_group_id", "timetable_entries", ["source_class_group_id"])


def downgrade() -> None:
    op.drop_index("ix_timetable_entries_source_class_group_id", table_name="timetable_entries")
    op.drop_index("ix_timetable_entries_owner_id", table_name="timetable_entries")
    op.drop_index("ix_timetable_entries_class_group_id", table_name="timetable_entries")
    op.drop_table("timetable_entries")
    op.drop_table("class_group_students")
    op.drop_index("ix_class_groups_professor_id", table_name="class_groups")
    op.drop_index("ix_class_groups_course_code", table_name="class_groups")
    op.drop_table("class_groups")
    op.drop_index("ix_classrooms_room_number", table_name="classrooms")
    op.drop_table("classrooms")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    bind = op.get_bind()
    weekday_enum.drop(bind, checkfirst=True)
    classroom_type_enum.drop(bind, checkfirst=True)
    user_role_enum.drop(bind, checkfirst=True)
