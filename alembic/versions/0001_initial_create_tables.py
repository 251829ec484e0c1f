"""initial create tables
"""
from alembic import op

# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Use SQLModel metadata creation to ensure consistency
    from sqlmodel import SQLModel
    import lms.models  # noqa: F401
    SQLModel.metadata.create_all(op.get_bind())


def downgrade():
    from sqlmodel import SQLModel
    import lms.models  # noqa: F401
    SQLModel.metadata.drop_all(op.get_bind())
