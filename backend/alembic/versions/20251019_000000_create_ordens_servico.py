"""Create ordens_servico table"""

revision = "20251019_000000"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa


def upgrade():
    """Create the service order table and its lookup indexes."""
    op.create_table(
        "ordens_servico",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("numero_os", sa.Integer, nullable=False),
        sa.Column("solicitante", sa.String(255), nullable=False),
        sa.Column("ubs", sa.String(255), nullable=False),
        sa.Column("setor", sa.String(255), nullable=False),
        sa.Column("descricao_problema", sa.Text, nullable=False),
        sa.Column("data_abertura", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="aberto"),
        sa.Column("servico_realizado", sa.Text),
        sa.Column("data_fechamento", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_ordens_servico_numero_os", "ordens_servico", ["numero_os"], unique=True)
    op.create_index("ix_ordens_servico_data_abertura", "ordens_servico", ["data_abertura"])
    op.create_index("ix_ordens_servico_status", "ordens_servico", ["status"])


def downgrade():
    """Drop the service order table."""
    op.drop_index("ix_ordens_servico_status", table_name="ordens_servico")
    op.drop_index("ix_ordens_servico_data_abertura", table_name="ordens_servico")
    op.drop_index("ix_ordens_servico_numero_os", table_name="ordens_servico")
    op.drop_table("ordens_servico")
