"""Add token usage and cost to agent executions

Revision ID: 002
Revises: 001
Create Date: 2026-10-18 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "002"
down_revision: str | None = "001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # Null means the execution never reached the provider
    op.add_column("agent_executions", sa.Column("tokens_used", sa.Integer(), nullable=True))
    op.add_column("agent_executions", sa.Column("cost_usd", sa.Float(), nullable=True))


def downgrade() -> None:
    op.drop_column("agent_executions", "cost_usd")
    op.drop_column("agent_executions", "tokens_used")
