"""Initial schema

Revision ID: 001
Revises: None
Create Date: 2026-10-17 00:00:00.000000+00:00

What:  Creates accounts, sessions, consumer profiles, businesses,
       favorites, chats, messages and analytics events.
How:   Portable column types (JSON, TIMESTAMP WITH TIME ZONE, string ids)
       so the same migration runs on PostgreSQL and SQLite.

Rollback: downgrade() drops every table (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(
        name,
        sa.TIMESTAMP(timezone=True),
        nullable=nullable,
        server_default=None if nullable else sa.text("CURRENT_TIMESTAMP"),
    )


def upgrade() -> None:
    # ── Accounts & sessions ───────────────────────────────────────────────
    op.create_table(
        "accounts",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("email", sa.String(320), nullable=False, comment="Lower-cased login email"),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("account_type", sa.String(20), nullable=False),
        sa.Column("disabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        _timestamp("created_at"),
        _timestamp("last_login_at", nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "auth_sessions",
        sa.Column("token", sa.String(128), nullable=False),
        sa.Column("account_id", sa.String(36), nullable=False),
        _timestamp("created_at"),
        sa.Column("expires_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("token"),
    )
    op.create_index("idx_auth_sessions_account_id", "auth_sessions", ["account_id"])

    # ── Profiles ──────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("profile_pic_url", sa.String(512), nullable=True),
        sa.Column("user_type", sa.String(20), nullable=False, server_default="user"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.ForeignKeyConstraint(["id"], ["accounts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "businesses",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("business_name", sa.String(100), nullable=False),
        sa.Column("user_type", sa.String(20), nullable=False, server_default="business"),
        sa.Column("verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("business_icon", sa.String(512), nullable=True),
        sa.Column("tagline", sa.String(255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("contact_email", sa.String(320), nullable=True),
        sa.Column("website", sa.String(512), nullable=True),
        sa.Column("social_links", sa.JSON(), nullable=True),
        sa.Column("address", sa.JSON(), nullable=True),
        sa.Column("google_map_location", sa.JSON(), nullable=True),
        sa.Column("google_map_url", sa.String(1024), nullable=True),
        sa.Column("business_hours", sa.JSON(), nullable=True),
        sa.Column("services", sa.JSON(), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.ForeignKeyConstraint(["id"], ["accounts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_businesses_category", "businesses", ["category"])
    op.create_index("idx_businesses_created_at", "businesses", ["created_at"])

    # ── Favorites ─────────────────────────────────────────────────────────
    op.create_table(
        "favorites",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("business_id", sa.String(36), nullable=False),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["user_id"], ["accounts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "business_id", name="uq_favorites_user_business"),
    )
    op.create_index("idx_favorites_user_id", "favorites", ["user_id"])

    # ── Chats ─────────────────────────────────────────────────────────────
    op.create_table(
        "chats",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("business_id", sa.String(36), nullable=False),
        sa.Column("user_name", sa.String(200), nullable=False, server_default="User"),
        sa.Column("business_name", sa.String(200), nullable=False, server_default="Business"),
        sa.Column("user_avatar", sa.String(512), nullable=True),
        sa.Column("business_avatar", sa.String(512), nullable=True),
        sa.Column("last_message", sa.Text(), nullable=False, server_default=""),
        _timestamp("last_message_at"),
        sa.Column("user_unread_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("business_unread_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_chats_user_id", "chats", ["user_id"])
    op.create_index("idx_chats_business_id", "chats", ["business_id"])
    op.create_index("idx_chats_last_message_at", "chats", ["last_message_at"])

    op.create_table(
        "messages",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("chat_id", sa.String(36), nullable=False),
        sa.Column("sender_id", sa.String(36), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        _timestamp("created_at"),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.ForeignKeyConstraint(["chat_id"], ["chats.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_messages_chat_id_created_at", "messages", ["chat_id", "created_at"])

    # ── Analytics ─────────────────────────────────────────────────────────
    op.create_table(
        "analytics_events",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("business_id", sa.String(36), nullable=False),
        sa.Column("event_type", sa.String(20), nullable=False),
        sa.Column("search_query", sa.Text(), nullable=True),
        sa.Column("user_agent", sa.String(512), nullable=False, server_default="unknown"),
        _timestamp("timestamp"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_analytics_events_business_id", "analytics_events", ["business_id"])


def downgrade() -> None:
    """Drop every table, children first."""
    op.drop_index("idx_analytics_events_business_id", table_name="analytics_events")
    op.drop_table("analytics_events")
    op.drop_index("idx_messages_chat_id_created_at", table_name="messages")
    op.drop_table("messages")
    op.drop_index("idx_chats_last_message_at", table_name="chats")
    op.drop_index("idx_chats_business_id", table_name="chats")
    op.drop_index("idx_chats_user_id", table_name="chats")
    op.drop_table("chats")
    op.drop_index("idx_favorites_user_id", table_name="favorites")
    op.drop_table("favorites")
    op.drop_index("idx_businesses_created_at", table_name="businesses")
    op.drop_index("idx_businesses_category", table_name="businesses")
    op.drop_table("businesses")
    op.drop_table("users")
    op.drop_index("idx_auth_sessions_account_id", table_name="auth_sessions")
    op.drop_table("auth_sessions")
    op.drop_table("accounts")
