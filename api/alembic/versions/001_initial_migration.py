"""Initial migration: create study tables

Revision ID: initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create user table
    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('current_level', sa.String(), nullable=False, server_default='A1'),
        sa.Column('daily_goal', sa.Integer(), nullable=True),
        sa.Column('session_limit', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_user_email'), 'user', ['email'], unique=True)

    # Create word table
    op.create_table(
        'word',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('french', sa.String(), nullable=False),
        sa.Column('english', sa.String(), nullable=False),
        sa.Column('part_of_speech', sa.String(), nullable=True),
        sa.Column('gender', sa.String(), nullable=True),
        sa.Column('cefr_level', sa.String(), nullable=False),
        sa.Column('category', sa.String(), nullable=False),
        sa.Column('subcategory', sa.String(), nullable=True),
        sa.Column('example_sentence', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_word_cefr_level'), 'word', ['cefr_level'], unique=False)

    # Create user_card table
    op.create_table(
        'user_card',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('word_id', sa.Integer(), nullable=False),
        sa.Column('ease_factor', sa.Float(), nullable=False, server_default='2.5'),
        sa.Column('interval_days', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('repetition', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('next_review', sa.DateTime(), nullable=False),
        sa.Column('last_review', sa.DateTime(), nullable=True),
        sa.Column('times_seen', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('times_correct', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('times_wrong', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(), nullable=False, server_default='new'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ),
        sa.ForeignKeyConstraint(['word_id'], ['word.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'word_id', name='uq_user_card_user_word')
    )
    op.create_index(op.f('ix_user_card_user_id'), 'user_card', ['user_id'], unique=False)
    op.create_index(op.f('ix_user_card_next_review'), 'user_card', ['next_review'], unique=False)

    # Create study_session table
    op.create_table(
        'study_session',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('session_type', sa.String(), nullable=False, server_default='review'),
        sa.Column('started_at', sa.DateTime(), nullable=False),
        sa.Column('ended_at', sa.DateTime(), nullable=True),
        sa.Column('cards_reviewed', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('cards_correct', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('cards_burned', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('new_cards_seen', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('duration_seconds', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_study_session_user_id'), 'study_session', ['user_id'], unique=False)

    # Create card_review table
    op.create_table(
        'card_review',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('user_card_id', sa.Integer(), nullable=False),
        sa.Column('study_session_id', sa.Integer(), nullable=True),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('quality', sa.Integer(), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ),
        sa.ForeignKeyConstraint(['user_card_id'], ['user_card.id'], ),
        sa.ForeignKeyConstraint(['study_session_id'], ['study_session.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_card_review_user_id'), 'card_review', ['user_id'], unique=False)

    # Create deck_plan table
    op.create_table(
        'deck_plan',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('plan_date', sa.String(length=10), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('fallback', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('tokens_used', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'plan_date', name='uq_deck_plan_user_date')
    )
    op.create_index(op.f('ix_deck_plan_user_id'), 'deck_plan', ['user_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_deck_plan_user_id'), table_name='deck_plan')
    op.drop_table('deck_plan')
    op.drop_index(op.f('ix_card_review_user_id'), table_name='card_review')
    op.drop_table('card_review')
    op.drop_index(op.f('ix_study_session_user_id'), table_name='study_session')
    op.drop_table('study_session')
    op.drop_index(op.f('ix_user_card_next_review'), table_name='user_card')
    op.drop_index(op.f('ix_user_card_user_id'), table_name='user_card')
    op.drop_table('user_card')
    op.drop_index(op.f('ix_word_cefr_level'), table_name='word')
    op.drop_table('word')
    op.drop_index(op.f('ix_user_email'), table_name='user')
    op.drop_table('user')
