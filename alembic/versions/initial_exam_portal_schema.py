"""initial_exam_portal_schema

Revision ID: initial_exam_portal_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

Creates the exam result portal tables:
- admin_users: portal administrators
- students / exam_results: candidates and their finalized result summary
- answer_keys: one answer key file per post
- portal_settings: global visibility flags, seeded as hidden
- audit_logs: append-only admin action history
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = 'initial_exam_portal_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


POST_CODES = ('DCP', 'DCO', 'FCD', 'LFM', 'DFO', 'SFO', 'WLO')
AUDIT_ACTIONS = (
    'ADMIN_LOGIN',
    'UPLOAD_COMPLETED',
    'UPLOAD_FAILED',
    'SETTINGS_UPDATED',
    'ACTIVATION_RUN',
    'DATA_CREATED',
    'DATA_UPDATED',
    'DATA_DELETED',
)
VISIBILITY_FLAGS = ('omrPublic', 'resultsPublic')


def upgrade() -> None:
    """Create all tables and seed the visibility flags."""
    post_code = postgresql.ENUM(*POST_CODES, name='post_code', create_type=False)
    audit_action = postgresql.ENUM(*AUDIT_ACTIONS, name='audit_action', create_type=False)

    bind = op.get_bind()
    post_code.create(bind, checkfirst=True)
    audit_action.create(bind, checkfirst=True)

    print("📋 Creating exam portal tables...")

    op.create_table(
        'admin_users',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('username', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.Text(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_admin_users_username', 'admin_users', ['username'], unique=True)

    op.create_table(
        'students',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('roll_number', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('date_of_birth', sa.Date(), nullable=False),
        sa.Column('mobile_number', sa.String(length=10), nullable=False),
        sa.Column('applied_post', post_code, nullable=False),
        sa.Column('omr_image_path', sa.String(length=500), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_students_roll_number', 'students', ['roll_number'], unique=True)
    op.create_index('ix_students_applied_post', 'students', ['applied_post'])
    op.create_index('ix_students_is_active', 'students', ['is_active'])

    op.create_table(
        'exam_results',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('student_id', sa.BigInteger(), nullable=False),
        sa.Column('correct_answers', sa.Integer(), nullable=False),
        sa.Column('wrong_answers', sa.Integer(), nullable=False),
        sa.Column('unattempted', sa.Integer(), nullable=False),
        sa.Column('total_questions', sa.Integer(), nullable=False),
        sa.Column('final_score', sa.Numeric(precision=7, scale=2), nullable=False),
        sa.Column('percentage', sa.Numeric(precision=6, scale=2), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('student_id'),
    )

    op.create_table(
        'answer_keys',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('post_code', post_code, nullable=False),
        sa.Column('file_path', sa.String(length=500), nullable=False),
        sa.Column('original_file_name', sa.String(length=255), nullable=False),
        sa.Column('is_published', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('uploaded_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('post_code'),
    )

    portal_settings = op.create_table(
        'portal_settings',
        sa.Column('key', sa.String(length=100), nullable=False),
        sa.Column('value', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
        sa.PrimaryKeyConstraint('key'),
    )

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('admin_id', sa.BigInteger(), nullable=True),
        sa.Column('action', audit_action, nullable=False),
        sa.Column('resource_type', sa.String(length=100), nullable=False),
        sa.Column('resource_id', sa.String(length=100), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('extra_data', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('ip_address', sa.String(length=50), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
        sa.ForeignKeyConstraint(['admin_id'], ['admin_users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_audit_logs_admin_id', 'audit_logs', ['admin_id'])
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])
    op.create_index('ix_audit_logs_created_at', 'audit_logs', ['created_at'])

    # Both flags start hidden
    op.bulk_insert(portal_settings, [{'key': key, 'value': False} for key in VISIBILITY_FLAGS])

    print("✅ Exam portal tables created")


def downgrade() -> None:
    """Drop all exam portal tables and enum types."""
    op.drop_table('audit_logs')
    op.drop_table('portal_settings')
    op.drop_table('answer_keys')
    op.drop_table('exam_results')
    op.drop_index('ix_students_is_active', table_name='students')
    op.drop_index('ix_students_applied_post', table_name='students')
    op.drop_index('ix_students_roll_number', table_name='students')
    op.drop_table('students')
    op.drop_index('ix_admin_users_username', table_name='admin_users')
    op.drop_table('admin_users')

    bind = op.get_bind()
    postgresql.ENUM(name='audit_action').drop(bind, checkfirst=True)
    postgresql.ENUM(name='post_code').drop(bind, checkfirst=True)
