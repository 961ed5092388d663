from __future__ import annotations
import uuid
from datetime import datetime, timedelta, timezone
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = "20251118_0001"
down_revision = None
branch_labels = None
depends_on = None

# Catalogue as it stood when this revision was written
SEED_CHALLENGES = [
    {
        "slug": "hulk-desafio",
        "name": "Desafio do Hulk",
        "description": "Percurso de força inspirado no Hulk para desafiar sua resistência.",
        "badge": "Série Especial",
        "highlight": "Percurso livre",
    },
    {
        "slug": "thor-novembro-25",
        "name": "Desafio Thor Novembro 25",
        "description": "Percurso heróico inspirado no Deus do Trovão para você fechar novembro com força total.",
        "badge": "Novembro 2025",
        "highlight": "Modalidades 5K / 10K",
    },
    {
        "slug": "flash-dezembro-25",
        "name": "Desafio Flash Dezembro 25",
        "description": "Sprint final do ano com provas eletrizantes para encerrar a temporada com velocidade.",
        "badge": "Dezembro 2025",
        "highlight": "Modalidades 5K / 10K",
    },
    {
        "slug": "marco-especial-26",
        "name": "Especial Superando Limites Março 26",
        "description": "Prova comemorativa dedicada à comunidade Desafio da Japa com percurso livre.",
        "badge": "Março 2026",
        "highlight": "Percurso livre",
    },
    {
        "slug": "turno-ouro-japa",
        "name": "Turno Ouro Desafio da Japa",
        "description": "Categoria exclusiva para quem concluiu toda a série Ouro e quer manter o ritmo.",
        "badge": "Série Ouro",
        "highlight": "Percurso livre",
    },
    {
        "slug": "meia-superando",
        "name": "Meia Maratona Superando Limites",
        "description": "21K para quem quer ir além na corrida virtual.",
        "badge": "Distância oficial",
        "highlight": "21K",
    },
]

def upgrade() -> None:
    challenges = op.create_table(
        "admin_challenges",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("slug", sa.String(length=120), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("badge", sa.String(length=80), nullable=True),
        sa.Column("highlight", sa.String(length=80), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_admin_challenges_slug", "admin_challenges", ["slug"], unique=True)

    op.create_table(
        "challenge_completions",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("challenge_slug", sa.String(length=120), nullable=False),
        sa.Column("challenge_name", sa.String(length=160), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False),
        sa.Column("state", sa.String(length=2), nullable=False),
        sa.Column("city", sa.String(length=120), nullable=False),
        sa.Column("whatsapp", sa.String(length=20), nullable=False),
        sa.Column("order_number", sa.String(length=64), nullable=False),
        sa.Column("strava_screenshot_url", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="active"),
        sa.Column("is_confirmed", sa.Boolean(), nullable=True, server_default=sa.false()),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("status in ('active','archived')", name="ck_challenge_completions_status"),
    )
    op.create_index("ix_challenge_completions_challenge_slug", "challenge_completions", ["challenge_slug"])
    op.create_index("ix_challenge_completions_created_at", "challenge_completions", ["created_at"])

    # Seed the catalogue; created_at is staggered so "newest first" keeps the declaration order
    now = datetime.now(timezone.utc)
    op.bulk_insert(
        challenges,
        [
            {"id": uuid.uuid4(), "is_active": True, "created_at": now - timedelta(seconds=i), **item}
            for i, item in enumerate(SEED_CHALLENGES)
        ],
    )

def downgrade() -> None:
    op.drop_index("ix_challenge_completions_created_at", table_name="challenge_completions")
    op.drop_index("ix_challenge_completions_challenge_slug", table_name="challenge_completions")
    op.drop_table("challenge_completions")
    op.drop_index("ix_admin_challenges_slug", table_name="admin_challenges")
    op.drop_table("admin_challenges")
