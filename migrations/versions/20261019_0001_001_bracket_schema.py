"""Initial schema - CueBracket tables

Revision ID: 001
Revises:
Create Date: 2026-10-19

Creates the tables for the CueBracket bracket engine:
- player_profiles: Players and their ratings
- tournaments: Knockout tournaments and their configuration
- tournament_participants: One player's entry in one tournament
- matches: Bracket matches, linked to the match their winner feeds
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ### Player Profiles table ###
    op.create_table(
        'player_profiles',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('display_name', sa.String(200), nullable=False),
        sa.Column('rating', sa.Integer(), server_default='1000'),
    )

    # ### Tournaments table ###
    op.create_table(
        'tournaments',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('format', sa.Enum('KNOCKOUT', name='tournamentformat'), server_default='KNOCKOUT'),
        sa.Column('seeding_mode', sa.String(20), server_default='fair'),
        sa.Column('race_to', sa.Integer(), server_default='5'),
        sa.Column('finals_race_to', sa.Integer(), nullable=True),
        sa.Column('status', sa.Enum(
            'REGISTRATION', 'ACTIVE', 'COMPLETED', 'CANCELLED',
            name='tournamentstatus'
        ), server_default='REGISTRATION'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('starts_at', sa.DateTime(), nullable=True),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
    )

    # ### Tournament Participants table ###
    op.create_table(
        'tournament_participants',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('tournament_id', sa.Integer(), sa.ForeignKey('tournaments.id'), nullable=False),
        sa.Column('player_profile_id', sa.Integer(), sa.ForeignKey('player_profiles.id'), nullable=False),
        sa.Column('seed', sa.Integer(), nullable=True),
        sa.Column('status', sa.Enum(
            'REGISTERED', 'ACTIVE', 'ELIMINATED', 'DISQUALIFIED', 'WINNER',
            name='participantstatus'
        ), server_default='REGISTERED'),
        sa.Column('final_position', sa.Integer(), nullable=True),
        sa.Column('matches_played', sa.Integer(), server_default='0'),
        sa.Column('matches_won', sa.Integer(), server_default='0'),
        sa.Column('matches_lost', sa.Integer(), server_default='0'),
        sa.Column('frames_won', sa.Integer(), server_default='0'),
        sa.Column('frames_lost', sa.Integer(), server_default='0'),
        sa.Column('frame_difference', sa.Integer(), server_default='0'),
        sa.Column('registered_at', sa.DateTime(), nullable=True),
        sa.Column('eliminated_at', sa.DateTime(), nullable=True),
    )

    # ### Matches table ###
    op.create_table(
        'matches',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('tournament_id', sa.Integer(), sa.ForeignKey('tournaments.id'), nullable=False),
        sa.Column('round_number', sa.Integer(), nullable=False),
        sa.Column('round_name', sa.String(50), nullable=False),
        sa.Column('bracket_position', sa.Integer(), nullable=False),
        sa.Column('match_type', sa.Enum(
            'REGULAR', 'QUARTER_FINAL', 'SEMI_FINAL', 'FINAL', 'THIRD_PLACE', 'BYE',
            name='matchtype'
        ), server_default='REGULAR'),
        sa.Column('status', sa.Enum(
            'SCHEDULED', 'PENDING_CONFIRMATION', 'COMPLETED',
            'DISPUTED', 'EXPIRED', 'CANCELLED',
            name='matchstatus'
        ), server_default='SCHEDULED'),
        sa.Column('player1_id', sa.Integer(), sa.ForeignKey('tournament_participants.id'), nullable=True),
        sa.Column('player2_id', sa.Integer(), sa.ForeignKey('tournament_participants.id'), nullable=True),
        sa.Column('player1_score', sa.Integer(), server_default='0'),
        sa.Column('player2_score', sa.Integer(), server_default='0'),
        sa.Column('winner_id', sa.Integer(), sa.ForeignKey('tournament_participants.id'), nullable=True),
        sa.Column('loser_id', sa.Integer(), sa.ForeignKey('tournament_participants.id'), nullable=True),
        sa.Column(
            'next_match_id', sa.Integer(),
            sa.ForeignKey('matches.id', ondelete='SET NULL'),
            nullable=True
        ),
        sa.Column('next_match_slot', sa.String(10), nullable=True),
        sa.Column('played_at', sa.DateTime(), nullable=True),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )

    # ### Create indexes for common queries ###
    op.create_index('ix_tournament_participants_tournament_id', 'tournament_participants', ['tournament_id'])
    op.create_index('ix_matches_tournament_round', 'matches', ['tournament_id', 'round_number', 'bracket_position'])
    op.create_index('ix_matches_next_match_id', 'matches', ['next_match_id'])
    op.create_index('ix_matches_status', 'matches', ['status'])


def downgrade() -> None:
    # Drop indexes
    op.drop_index('ix_matches_status', 'matches')
    op.drop_index('ix_matches_next_match_id', 'matches')
    op.drop_index('ix_matches_tournament_round', 'matches')
    op.drop_index('ix_tournament_participants_tournament_id', 'tournament_participants')

    # Drop tables in reverse order of creation
    op.drop_table('matches')
    op.drop_table('tournament_participants')
    op.drop_table('tournaments')
    op.drop_table('player_profiles')

    # Drop enums (SQLite doesn't require this, but PostgreSQL would)
    # These are automatically cleaned up in SQLite
