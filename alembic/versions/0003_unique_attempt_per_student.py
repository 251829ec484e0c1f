"""one attempt per (quiz, student)
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0003_unique_attempt_per_student'
down_revision = '0002_add_notification_table'
branch_labels = None
depends_on = None

CONSTRAINT = "uq_attempt_quiz_student"


def upgrade():
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    existing = {c["name"] for c in inspector.get_unique_constraints("quizattempt")}
    if CONSTRAINT in existing:
        return
    with op.batch_alter_table("quizattempt") as batch_op:
        batch_op.create_unique_constraint(CONSTRAINT, ["quiz_id", "student_id"])


def downgrade():
    with op.batch_alter_table("quizattempt") as batch_op:
        batch_op.drop_constraint(CONSTRAINT, type_="unique")
