from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from bingo import db
from bingo.models import Game


class StoreError(Exception):
    """A game record could not be read or written."""


class SqlGameStore:
    """Game-store collaborator backed by the ``game`` table."""

    def __init__(self, session=None):
        self._session = session or db.session

    def load(self, game_id: str) -> Optional[Game]:
        return Game.query.filter_by(id=game_id).first()

    def save(self, game_id: str, fields: Dict[str, Any]) -> Game:
        try:
            game = Game.query.filter_by(id=game_id).first()
            if game is None:
                raise StoreError(f'Game {game_id} not found')
            for key, value in fields.items():
                setattr(game, key, value)
            self._session.add(game)
            self._session.commit()
            return game
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StoreError(str(exc)) from exc
