"""initial schema

Revision ID: 3f9c1a7d2b60
Revises: 
Create Date: 2025-09-02 10:14:05.412871

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9c1a7d2b60'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('role', sa.String(), nullable=False, server_default='viewer'),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'permissions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('role', sa.String(), nullable=False, unique=True),
        sa.Column('can_edit_consultant', sa.Boolean(), nullable=True),
        sa.Column('can_delete_consultant', sa.Boolean(), nullable=True),
        sa.Column('can_manage_users', sa.Boolean(), nullable=True),
        sa.Column('can_add_review', sa.Boolean(), nullable=True),
        sa.Column('can_rate', sa.Boolean(), nullable=True),
        sa.Column('can_edit_experience', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_permissions_id', 'permissions', ['id'])

    op.create_table(
        'consultants',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('category', sa.String(), nullable=True),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('img', sa.String(), nullable=True),
        sa.Column('expertise', sa.JSON(), nullable=True),
        sa.Column('emails', sa.JSON(), nullable=True),
        sa.Column('phones', sa.JSON(), nullable=True),
        sa.Column('qualifications', sa.JSON(), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=True),
        sa.Column('sectors', sa.JSON(), nullable=True),
        sa.Column('associations', sa.JSON(), nullable=True),
        sa.Column('media', sa.JSON(), nullable=True),
        sa.Column('experience', sa.JSON(), nullable=True),
        sa.Column('projects', sa.JSON(), nullable=True),
        sa.Column('search_text', sa.Text(), nullable=True),
        sa.Column('search_keywords', sa.JSON(), nullable=True),
        sa.Column('rating_avg', sa.Float(), nullable=False, server_default='0'),
        sa.Column('rating_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_consultants_id', 'consultants', ['id'])
    op.create_index('ix_consultants_name', 'consultants', ['name'])
    op.create_index('ix_consultants_category', 'consultants', ['category'])

    op.create_table(
        'consultant_reviews',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('consultant_id', sa.Integer(), sa.ForeignKey('consultants.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('user_name', sa.String(), nullable=True),
        sa.Column('rating', sa.Integer(), nullable=True),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('answers', sa.JSON(), nullable=True),
        sa.Column('overall_rating', sa.Float(), nullable=True),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('project_name', sa.String(), nullable=True),
        sa.Column('project_date', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_consultant_reviews_id', 'consultant_reviews', ['id'])
    op.create_index('ix_consultant_reviews_consultant_id', 'consultant_reviews', ['consultant_id'])
    op.create_index('ix_consultant_reviews_user_id', 'consultant_reviews', ['user_id'])


def downgrade() -> None:
    op.drop_table('consultant_reviews')
    op.drop_table('consultants')
    op.drop_table('permissions')
    op.drop_table('users')
