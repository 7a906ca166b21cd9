from typing import List, Optional

from flask import current_app

from triviaboard import db
from triviaboard.errors import GameError, NOT_FOUND, CONFLICT, INVALID
from triviaboard.models import Game, Team, GAME_LOBBY, GAME_IN_PROGRESS, GAME_FINISHED
from .access import ensure_host


def load_game(game_id: int) -> Game:
    game = db.session.get(Game, game_id)
    if not game:
        raise GameError('Game not found', NOT_FOUND)
    return game


def create_game(host_id: int, title: str, team_limit: Optional[int] = None) -> Game:
    title = (title or '').strip()
    if not title:
        raise GameError('Game title is required')
    if team_limit is None:
        team_limit = int(current_app.config.get('DEFAULT_TEAM_LIMIT', 4))
    if team_limit < 1:
        raise GameError('Team limit must be at least 1')

    game = Game(title=title, host_id=host_id, team_limit=team_limit, status=GAME_LOBBY)
    db.session.add(game)
    db.session.commit()
    current_app.logger.info(f"[create] game={game.id} host={host_id} team_limit={team_limit}")
    return game


def get_game(game_id: int) -> Game:
    return load_game(game_id)


def list_games_for_host(host_id: int) -> List[Game]:
    return (
        Game.query.filter_by(host_id=host_id)
        .order_by(Game.created_at.desc(), Game.id.desc())
        .all()
    )


def update_game_settings(game_id: int, data: dict, actor_id: int) -> Game:
    """Change title and/or team limit while the game is still in the lobby."""
    game = load_game(game_id)
    ensure_host(game, actor_id)
    if game.status != GAME_LOBBY:
        raise GameError('Game settings are locked once the game starts', CONFLICT)

    title = data.get('title')
    next_title = title.strip() if title is not None else game.title
    if not next_title:
        raise GameError('Game title is required')
    team_limit = data.get('team_limit')
    next_team_limit = team_limit if team_limit is not None else game.team_limit
    if next_team_limit < 1:
        raise GameError('Team limit must be at least 1', INVALID)

    game.title = next_title
    game.team_limit = next_team_limit
    db.session.add(game)
    db.session.commit()
    current_app.logger.info(f"[settings] game={game.id} title={game.title!r} team_limit={game.team_limit}")
    return game


def start_game(game_id: int, actor_id: int) -> Game:
    game = load_game(game_id)
    ensure_host(game, actor_id)
    if game.status != GAME_LOBBY:
        raise GameError('Game has already started', CONFLICT)

    team_count = Team.query.filter_by(game_id=game.id).count()
    if not team_count:
        raise GameError('Add at least one team before starting the game', CONFLICT)

    game.status = GAME_IN_PROGRESS
    db.session.add(game)
    db.session.commit()
    current_app.logger.info(f"[start] game={game.id} teams={team_count}")
    return game


def finish_game(game_id: int, actor_id: int) -> Game:
    game = load_game(game_id)
    ensure_host(game, actor_id)
    if game.status != GAME_IN_PROGRESS:
        raise GameError('Game must be in progress to finish', CONFLICT)

    game.status = GAME_FINISHED
    db.session.add(game)
    db.session.commit()
    current_app.logger.info(f"[finish] game={game.id}")
    return game


def delete_game(game_id: int, actor_id: int) -> None:
    game = load_game(game_id)
    ensure_host(game, actor_id)
    try:
        db.session.delete(game)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    current_app.logger.info(f"[delete] game={game_id} by={actor_id}")
