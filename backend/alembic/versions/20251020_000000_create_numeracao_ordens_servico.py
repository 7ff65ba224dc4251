"""Create numeracao_ordens_servico high-water mark"""

revision = "20251020_000000"
down_revision = "20251019_000000"
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa


def upgrade():
    """Create the numbering table and seed it from the orders already stored."""
    op.create_table(
        "numeracao_ordens_servico",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("ultimo_numero", sa.Integer, nullable=False),
    )
    op.execute(
        "INSERT INTO numeracao_ordens_servico (id, ultimo_numero) "
        "SELECT 1, numero_os FROM ordens_servico ORDER BY numero_os DESC LIMIT 1"
    )


def downgrade():
    """Drop the numbering table."""
    op.drop_table("numeracao_ordens_servico")
