from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        "player",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("email", sa.String(), nullable=False, unique=True),
        sa.Column("alias", sa.String(), nullable=False, server_default=""),
        sa.Column("first_name", sa.String(), nullable=False, server_default=""),
        sa.Column("rating", sa.Integer(), nullable=False, server_default="1000"),
        sa.Column("wins", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("losses", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_table(
        "deck",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "player_id",
            sa.String(),
            sa.ForeignKey("player.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("decklist_url", sa.String(length=500), nullable=False, server_default=""),
    )
    op.create_table(
        "period",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("weekday", sa.Integer(), nullable=False),
        sa.Column("hour", sa.Integer(), nullable=False),
        sa.Column("minute", sa.Integer(), nullable=False),
        sa.Column("matches_per_player", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("weekday BETWEEN 0 AND 6", name="ck_period_weekday"),
        sa.CheckConstraint("hour BETWEEN 0 AND 23", name="ck_period_hour"),
        sa.CheckConstraint("minute BETWEEN 0 AND 59", name="ck_period_minute"),
    )
    op.create_table(
        "pending_match",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("period_id", sa.String(), nullable=True),
        sa.Column("player1_id", sa.String(), sa.ForeignKey("player.id"), nullable=False),
        sa.Column("player1_deck_id", sa.String(), nullable=True),
        sa.Column("player1_wins", sa.Integer(), nullable=False),
        sa.Column("player1_approved", sa.Boolean(), nullable=False),
        sa.Column("player2_id", sa.String(), sa.ForeignKey("player.id"), nullable=False),
        sa.Column("player2_deck_id", sa.String(), nullable=True),
        sa.Column("player2_wins", sa.Integer(), nullable=False),
        sa.Column("player2_approved", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_table(
        "match",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("period_id", sa.String(), nullable=True),
        sa.Column("player1_id", sa.String(), sa.ForeignKey("player.id"), nullable=False),
        sa.Column("player1_deck_name", sa.String(), nullable=False),
        sa.Column("player1_wins", sa.Integer(), nullable=False),
        sa.Column("player1_rating_change", sa.Integer(), nullable=False),
        sa.Column("player2_id", sa.String(), sa.ForeignKey("player.id"), nullable=False),
        sa.Column("player2_deck_name", sa.String(), nullable=False),
        sa.Column("player2_wins", sa.Integer(), nullable=False),
        sa.Column("player2_rating_change", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("approved_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_match_period_player1", "match", ["period_id", "player1_id"])
    op.create_index("ix_match_period_player2", "match", ["period_id", "player2_id"])

def downgrade():
    op.drop_index("ix_match_period_player2", table_name="match")
    op.drop_index("ix_match_period_player1", table_name="match")
    op.drop_table("match")
    op.drop_table("pending_match")
    op.drop_table("period")
    op.drop_table("deck")
    op.drop_table("player")
