"""initial schema

Revision ID: 202610190001
Revises:
Create Date: 2026-10-19 00:00:01
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "202610190001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="player"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
        sa.CheckConstraint("role IN ('admin', 'organizer', 'player')", name="chk_user_role"),
    )
    op.create_index("idx_users_role", "users", ["role"])
    op.create_index("idx_users_username", "users", ["username"])

    op.create_table(
        "players",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("xp", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("level", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("tier", sa.String(length=20), nullable=False, server_default="BRONZE"),
        sa.Column("sub_rank", sa.String(length=32), nullable=False, server_default="Bronze III"),
        sa.Column("preferred_mode", sa.String(length=20), nullable=False, server_default="GRINDER"),
        sa.Column("total_contests", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_wins", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("win_streak", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("best_win_streak", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("streak_days", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("last_contest_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_level_up_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
        sa.CheckConstraint("xp >= 0", name="chk_player_xp"),
        sa.CheckConstraint("level >= 1", name="chk_player_level"),
        sa.CheckConstraint(
            "tier IN ('BRONZE', 'SILVER', 'GOLD', 'PLATINUM', 'DIAMOND', 'MASTER')",
            name="chk_player_tier",
        ),
        sa.CheckConstraint(
            "preferred_mode IN ('PRECISION', 'GRINDER', 'LEGEND')",
            name="chk_player_mode",
        ),
    )
    op.create_index("idx_players_xp", "players", ["xp"])
    op.create_index("idx_players_tier", "players", ["tier"])

    op.create_table(
        "problems",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("difficulty", sa.String(length=10), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("difficulty IN ('EASY', 'MEDIUM', 'HARD')", name="chk_problem_difficulty"),
        sa.CheckConstraint("points >= 0", name="chk_problem_points"),
    )
    op.create_index("ix_problems_difficulty", "problems", ["difficulty"])

    op.create_table(
        "contests",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("problem_ids", sa.JSON(), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration_mins", sa.Integer(), nullable=False, server_default=sa.text("90")),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("invite_code", sa.String(length=16), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="DRAFT"),
        sa.Column("participant_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("leaderboard_frozen", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("winner_ids", sa.JSON(), nullable=True),
        sa.Column("finalized_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status IN ('DRAFT', 'UPCOMING', 'LIVE', 'ENDED', 'CANCELLED')",
            name="chk_contest_status",
        ),
        sa.CheckConstraint("end_time > start_time", name="chk_contest_window"),
        sa.CheckConstraint("duration_mins > 0", name="chk_contest_duration"),
        sa.CheckConstraint("participant_count >= 0", name="chk_contest_participant_count"),
    )
    op.create_index("idx_contests_status", "contests", ["status"])
    op.create_index("idx_contests_start_time", "contests", ["start_time"])

    op.create_table(
        "contest_participants",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("contest_id", sa.Integer(), nullable=False),
        sa.Column("player_id", sa.Integer(), nullable=False),
        sa.Column("mode", sa.String(length=20), nullable=False),
        sa.Column("raw_score", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("accuracy_score", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("xp_score", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("final_rating", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("problems_solved", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("penalty_mins", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("xp_earned", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("last_solved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("final_rank", sa.Integer(), nullable=True),
        sa.Column("joined_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["contest_id"], ["contests.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("contest_id", "player_id", name="uq_contest_player"),
        sa.CheckConstraint("mode IN ('PRECISION', 'GRINDER', 'LEGEND')", name="chk_participant_mode"),
        sa.CheckConstraint("problems_solved >= 0", name="chk_participant_solved"),
        sa.CheckConstraint("penalty_mins >= 0", name="chk_participant_penalty"),
        sa.CheckConstraint("final_rank IS NULL OR final_rank >= 1", name="chk_participant_rank"),
    )
    op.create_index("idx_participants_rating", "contest_participants", ["contest_id", "final_rating"])

    op.create_table(
        "submissions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("idempotency_key", sa.String(length=64), nullable=False),
        sa.Column("player_id", sa.Integer(), nullable=False),
        sa.Column("problem_id", sa.Integer(), nullable=False),
        sa.Column("contest_id", sa.Integer(), nullable=True),
        sa.Column("language", sa.String(length=20), nullable=False),
        sa.Column("code", sa.Text(), nullable=False),
        sa.Column("verdict", sa.String(length=32), nullable=False, server_default="PENDING"),
        sa.Column("wrong_attempts", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("points_earned", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("runtime_ms", sa.Integer(), nullable=True),
        sa.Column("memory_mb", sa.Float(), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("judged_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["problem_id"], ["problems.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["contest_id"], ["contests.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("idempotency_key"),
        sa.CheckConstraint(
            "verdict IN ('PENDING', 'ACCEPTED', 'WRONG_ANSWER', 'TIME_LIMIT_EXCEEDED', "
            "'RUNTIME_ERROR', 'COMPILATION_ERROR', 'MEMORY_LIMIT_EXCEEDED')",
            name="chk_submission_verdict",
        ),
        sa.CheckConstraint("wrong_attempts >= 0", name="chk_wrong_attempts"),
        sa.CheckConstraint("points_earned >= 0", name="chk_points_earned"),
        sa.CheckConstraint("runtime_ms >= 0", name="chk_runtime_ms"),
        sa.CheckConstraint("memory_mb >= 0", name="chk_memory_mb"),
    )
    op.create_index("idx_submissions_triple", "submissions", ["player_id", "problem_id", "contest_id"])
    op.create_index("idx_submissions_verdict", "submissions", ["verdict"])
    op.create_index("idx_submissions_submitted_at", "submissions", ["submitted_at"])

    op.create_table(
        "xp_ledger",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("player_id", sa.Integer(), nullable=False),
        sa.Column("contest_id", sa.Integer(), nullable=True),
        sa.Column("problem_id", sa.Integer(), nullable=True),
        sa.Column("source", sa.String(length=20), nullable=False),
        sa.Column("base_xp", sa.Integer(), nullable=False),
        sa.Column("multiplier", sa.Float(), nullable=False, server_default=sa.text("1")),
        sa.Column("final_xp", sa.Integer(), nullable=False),
        sa.Column("idempotency_key", sa.String(length=96), nullable=True),
        sa.Column("earned_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["contest_id"], ["contests.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["problem_id"], ["problems.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("idempotency_key"),
        sa.CheckConstraint(
            "source IN ('CONTEST_JOIN', 'SOLVE_EASY', 'SOLVE_MEDIUM', 'SOLVE_HARD', 'RANK_BONUS')",
            name="chk_xp_source",
        ),
        sa.CheckConstraint("base_xp >= 0", name="chk_xp_base"),
        sa.CheckConstraint("multiplier >= 0", name="chk_xp_multiplier"),
        sa.CheckConstraint("final_xp >= 0", name="chk_xp_final"),
    )
    op.create_index("idx_xp_ledger_player", "xp_ledger", ["player_id", "earned_at"])
    op.create_index("idx_xp_ledger_contest_source", "xp_ledger", ["contest_id", "source"])

    op.create_table(
        "audit_events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("action", sa.String(length=64), nullable=False),
        sa.Column("target_type", sa.String(length=32), nullable=True),
        sa.Column("target_id", sa.String(length=64), nullable=True),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("metadata_json", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_events_action", "audit_events", ["action"])
    op.create_index("idx_audit_events_target", "audit_events", ["target_type", "target_id", "id"])
    op.create_index("idx_audit_events_created_at", "audit_events", ["created_at"])


def downgrade() -> None:
    op.drop_index("idx_audit_events_created_at", table_name="audit_events")
    op.drop_index("idx_audit_events_target", table_name="audit_events")
    op.drop_index("ix_audit_events_action", table_name="audit_events")
    op.drop_table("audit_events")

    op.drop_index("idx_xp_ledger_contest_source", table_name="xp_ledger")
    op.drop_index("idx_xp_ledger_player", table_name="xp_ledger")
    op.drop_table("xp_ledger")

    op.drop_index("idx_submissions_submitted_at", table_name="submissions")
    op.drop_index("idx_submissions_verdict", table_name="submissions")
    op.drop_index("idx_submissions_triple", table_name="submissions")
    op.drop_table("submissions")

    op.drop_index("idx_participants_rating", table_name="contest_participants")
    op.drop_table("contest_participants")

    op.drop_index("idx_contests_start_time", table_name="contests")
    op.drop_index("idx_contests_status", table_name="contests")
    op.drop_table("contests")

    op.drop_index("ix_problems_difficulty", table_name="problems")
    op.drop_table("problems")

    op.drop_index("idx_players_tier", table_name="players")
    op.drop_index("idx_players_xp", table_name="players")
    op.drop_table("players")

    op.drop_index("idx_users_username", table_name="users")
    op.drop_index("idx_users_role", table_name="users")
    op.drop_table("users")
