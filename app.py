"""
CueBracket Application Controller

Top-level controller that wires the bracket engine together.
"""

import logging
from typing import Optional

from PySide6.QtCore import QObject
from sqlalchemy.orm import Session

from config import BRACKET_SETTINGS, BracketSettings, configure_logging, init_config
from engine.byes import ByeProcessor
from engine.positions import PositionCalculator
from engine.seeding import TraditionalSeeder
from engine.single_elimination import SingleEliminationGenerator
from engine.structure import BracketStructureBuilder, SeedingMode
from models.base import init_db
from services.bracket_service import BracketService
from services.event_bus import EventBus

log = logging.getLogger(__name__)


class CueBracketApp(QObject):
    """
    Top-level application controller.

    Owns the event bus and builds a BracketService for each database session.

    Usage:
        app = CueBracketApp()
        with get_session() as session:
            service = app.bracket_service(session)
            service.start_tournament(tournament)
    """

    def __init__(
        self,
        settings: BracketSettings = BRACKET_SETTINGS,
        event_bus: Optional[EventBus] = None,
        initialize: bool = True,
    ):
        super().__init__()

        # Directories, logging and tables; tests bring their own database
        if initialize:
            init_config()
            configure_logging()
            init_db()

        self.settings = settings
        self.event_bus = event_bus if event_bus is not None else EventBus()

        # Audit trail of bracket lifecycle events
        self.event_bus.bracket_generated.connect(self._on_bracket_generated)
        self.event_bus.tournament_completed.connect(self._on_tournament_completed)
        self.event_bus.bracket_error.connect(self._on_bracket_error)

    def bracket_service(self, session: Session) -> BracketService:
        """Build a BracketService with the single elimination generator registered."""
        builder = BracketStructureBuilder(SeedingMode(self.settings.default_seeding_mode))
        generator = SingleEliminationGenerator(
            session,
            TraditionalSeeder(session),
            builder,
            ByeProcessor(session),
            settings=self.settings,
        )

        service = BracketService(session, PositionCalculator(session), self.event_bus)
        return service.register_generator(generator)

    def _on_bracket_generated(self, tournament_id: int, result: dict) -> None:
        log.info(
            "Bracket ready for tournament %s: %s matches over %s rounds",
            tournament_id, result.get("matches_created"), result.get("total_rounds"),
        )

    def _on_tournament_completed(self, tournament_id: int) -> None:
        log.info("Tournament %s completed", tournament_id)

    def _on_bracket_error(self, tournament_id: int, message: str) -> None:
        log.error("Bracket error for tournament %s: %s", tournament_id, message)
