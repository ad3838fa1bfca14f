"""
Shared fixtures: an in-memory database and tournament factories.
"""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app import CueBracketApp
from engine.byes import ByeProcessor
from engine.seeding import TraditionalSeeder
from engine.single_elimination import SingleEliminationGenerator
from engine.structure import BracketStructureBuilder
from models.base import Base
from models.player import PlayerProfile
from models.tournament import Tournament, TournamentParticipant


REGISTRATION_START = datetime(2026, 1, 1, 9, 0, 0)


@pytest.fixture
def session():
    """Fresh in-memory SQLite database per test."""
    engine = create_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def make_tournament(session):
    """
    Factory for a knockout tournament with one participant per rating.

    Participants register one minute apart in list order and are named
    "Player 1", "Player 2", ...
    """
    def _make(ratings, seeding_mode="fair", race_to=5, finals_race_to=None, name="Test Open"):
        tournament = Tournament(
            name=name,
            seeding_mode=seeding_mode,
            race_to=race_to,
            finals_race_to=finals_race_to,
        )
        session.add(tournament)
        session.flush()

        for index, rating in enumerate(ratings):
            profile = PlayerProfile(display_name=f"Player {index + 1}", rating=rating)
            session.add(profile)
            session.flush()
            session.add(TournamentParticipant(
                tournament_id=tournament.id,
                player_profile_id=profile.id,
                registered_at=REGISTRATION_START + timedelta(minutes=index),
            ))

        session.commit()
        return tournament

    return _make


@pytest.fixture
def ranked_tournament(make_tournament):
    """
    Factory for a field whose seed order matches registration order.

    Player N gets seed N.
    """
    def _make(count, **kwargs):
        return make_tournament([2000 - 10 * i for i in range(count)], **kwargs)

    return _make


@pytest.fixture
def generator(session):
    return SingleEliminationGenerator(
        session,
        TraditionalSeeder(session),
        BracketStructureBuilder(),
        ByeProcessor(session),
    )


@pytest.fixture
def cue_app():
    return CueBracketApp(initialize=False)


@pytest.fixture
def bracket_service(session, cue_app):
    return cue_app.bracket_service(session)
