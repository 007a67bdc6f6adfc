"""add_earnings_tables

Revision ID: c4e1a9d2b7f3
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'c4e1a9d2b7f3'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'earnings_transcripts',
        sa.Column('id', sa.String(length=120), nullable=False),
        sa.Column('quarter', sa.String(length=10), nullable=False),
        sa.Column('fiscal_year', sa.Integer(), nullable=False),
        sa.Column('date', sa.DateTime(), nullable=False),
        sa.Column('url', sa.Text(), nullable=False),
        sa.Column('company', sa.String(length=100), nullable=False),
        sa.Column('source', sa.String(length=50), nullable=False),
        sa.Column('management_remarks', sa.Text(), nullable=False),
        sa.Column('qa_section', sa.Text(), nullable=False),
        sa.Column('full_transcript', sa.Text(), nullable=False),
        sa.Column('participants', sa.JSON(), nullable=True),
        sa.Column('provenance', sa.String(length=20), server_default='scraped', nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_earnings_transcripts_quarter'), 'earnings_transcripts', ['quarter'], unique=False)
    op.create_index(op.f('ix_earnings_transcripts_company'), 'earnings_transcripts', ['company'], unique=False)

    op.create_table(
        'earnings_quarter_insights',
        sa.Column('transcript_id', sa.String(length=120), nullable=False),
        sa.Column('quarter', sa.String(length=10), nullable=False),
        sa.Column('management_sentiment', sa.JSON(), nullable=False),
        sa.Column('qa_sentiment', sa.JSON(), nullable=False),
        sa.Column('strategic_focuses', sa.JSON(), nullable=False),
        sa.Column('key_metrics', sa.JSON(), nullable=True),
        sa.Column('failures', sa.JSON(), nullable=True),
        sa.Column('generated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('transcript_id'),
    )
    op.create_index(op.f('ix_earnings_quarter_insights_quarter'), 'earnings_quarter_insights', ['quarter'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_earnings_quarter_insights_quarter'), table_name='earnings_quarter_insights')
    op.drop_table('earnings_quarter_insights')
    op.drop_index(op.f('ix_earnings_transcripts_company'), table_name='earnings_transcripts')
    op.drop_index(op.f('ix_earnings_transcripts_quarter'), table_name='earnings_transcripts')
    op.drop_table('earnings_transcripts')
