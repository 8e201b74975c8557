"""Initial ladder schema: players, queue_entries, matches, prizes

Revision ID: 3f1a9c2d7b40
Revises:
Create Date: 2026-10-12 09:00:00.000000+00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# Revision identifiers, used by Alembic.
revision: str = "3f1a9c2d7b40"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "players",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("chat_user_id", sa.String(length=64), nullable=True),
        sa.Column("office", sa.String(length=100), nullable=False),
        sa.Column("avatar_ref", sa.String(length=500), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="1"),
        sa.Column("joined_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("chat_user_id"),
    )
    op.create_index("idx_players_office_active", "players", ["office", "is_active"], unique=False)

    op.create_table(
        "queue_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("player_id", sa.Integer(), nullable=False),
        sa.Column("office", sa.String(length=100), nullable=False),
        sa.Column("joined_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("player_id"),
    )
    op.create_index(
        "idx_queue_entries_office_joined", "queue_entries", ["office", "joined_at"], unique=False
    )

    op.create_table(
        "matches",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("player1_id", sa.Integer(), nullable=False),
        sa.Column("player2_id", sa.Integer(), nullable=False),
        sa.Column("winner_id", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("week_start", sa.Date(), nullable=False),
        sa.Column("reported_by", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("player1_id <> player2_id", name="ck_matches_distinct_players"),
        sa.CheckConstraint(
            "status IN ('pending', 'completed', 'cancelled')",
            name="ck_matches_status",
        ),
        sa.CheckConstraint(
            "(status = 'completed') = (winner_id IS NOT NULL)",
            name="ck_matches_winner_iff_completed",
        ),
        sa.ForeignKeyConstraint(["player1_id"], ["players.id"]),
        sa.ForeignKeyConstraint(["player2_id"], ["players.id"]),
        sa.ForeignKeyConstraint(["winner_id"], ["players.id"]),
        sa.ForeignKeyConstraint(["reported_by"], ["players.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_matches_p1_week_status", "matches", ["player1_id", "week_start", "status"], unique=False
    )
    op.create_index(
        "idx_matches_p2_week_status", "matches", ["player2_id", "week_start", "status"], unique=False
    )
    op.create_index("idx_matches_status_created", "matches", ["status", "created_at"], unique=False)

    op.create_table(
        "prizes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("player_id", sa.Integer(), nullable=False),
        sa.Column("prize_type", sa.String(length=30), nullable=False),
        sa.Column("week_start", sa.Date(), nullable=False),
        sa.Column("earned_at", sa.DateTime(), nullable=False),
        sa.Column("claimed", sa.Boolean(), nullable=False, server_default="0"),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("player_id", "prize_type", "week_start", name="uq_prize_player_type_week"),
    )


def downgrade() -> None:
    op.drop_table("prizes")
    op.drop_index("idx_matches_status_created", table_name="matches")
    op.drop_index("idx_matches_p2_week_status", table_name="matches")
    op.drop_index("idx_matches_p1_week_status", table_name="matches")
    op.drop_table("matches")
    op.drop_index("idx_queue_entries_office_joined", table_name="queue_entries")
    op.drop_table("queue_entries")
    op.drop_index("idx_players_office_active", table_name="players")
    op.drop_table("players")
