from typing import Iterable, List, Optional

from flask import current_app

from triviaboard import db
from triviaboard.errors import GameError, NOT_FOUND, CONFLICT
from triviaboard.models import Round, Category, Clue, GAME_LOBBY, ROUND_JEOPARDY, ROUND_TYPES
from .access import ensure_host
from .lifecycle import load_game


def _load_round(round_id: int) -> Round:
    round_ = db.session.get(Round, round_id)
    if not round_:
        raise GameError('Round not found', NOT_FOUND)
    return round_


def _ensure_host(game, actor_id: int) -> None:
    ensure_host(game, actor_id, 'Only the host can manage rounds')


def resequence_rounds(game_id: int) -> None:
    rounds = Round.query.filter_by(game_id=game_id).order_by(Round.order.asc(), Round.id.asc()).all()
    for index, round_ in enumerate(rounds, start=1):
        if round_.order != index:
            round_.order = index
            db.session.add(round_)


def list_rounds(game_id: int) -> List[Round]:
    return Round.query.filter_by(game_id=game_id).order_by(Round.order.asc()).all()


def _build_clue(data: dict) -> Clue:
    if not isinstance(data, dict):
        raise GameError('Each clue must be an object')
    missing = [key for key in ('question', 'answer', 'value') if data.get(key) in (None, '')]
    if missing:
        raise GameError(f"Clue is missing {', '.join(missing)}")
    if isinstance(data['value'], bool):
        raise GameError('Clue value must be an integer')
    try:
        value = int(data['value'])
    except (TypeError, ValueError):
        raise GameError('Clue value must be an integer')
    return Clue(
        question=data['question'],
        answer=data['answer'],
        value=value,
        media_url=data.get('media_url'),
        is_daily_double=bool(data.get('is_daily_double', False)),
    )


def _build_category(data: dict, index: int) -> Category:
    if not isinstance(data, dict):
        raise GameError('Each category must be an object')
    title = data.get('title') or ''
    if not isinstance(title, str) or not title.strip():
        raise GameError('Category title is required')
    order = data.get('order')
    if order is None:
        order = index
    elif isinstance(order, bool) or not isinstance(order, int):
        raise GameError('Category order must be an integer')
    clues = data.get('clues') or []
    if not isinstance(clues, list):
        raise GameError('clues must be a list')
    category = Category(title=title.strip(), order=order)
    for clue in clues:
        category.clues.append(_build_clue(clue))
    return category


def create_round(
    actor_id: int,
    game_id: int,
    categories: Iterable[dict],
    type: str = ROUND_JEOPARDY,
    order: Optional[int] = None,
) -> Round:
    """Create a round with its categories and clue templates in one write.

    ``categories`` is a list of ``{'title', 'order'?, 'clues': [...]}`` dicts;
    each clue needs ``question``, ``answer`` and ``value`` and may carry
    ``media_url`` and ``is_daily_double``.
    """
    categories = list(categories or [])
    if not categories:
        raise GameError('At least one category is required')
    if type not in ROUND_TYPES:
        raise GameError(f'Unknown round type: {type}')

    game = load_game(game_id)
    _ensure_host(game, actor_id)
    if game.status != GAME_LOBBY:
        raise GameError('Rounds can only be edited while the game is in the lobby state', CONFLICT)

    if order is None:
        order = Round.query.filter_by(game_id=game.id).count() + 1

    round_ = Round(game_id=game.id, type=type, order=order)
    try:
        for index, data in enumerate(categories, start=1):
            round_.categories.append(_build_category(data, index))
        db.session.add(round_)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    current_app.logger.info(
        f"[round-create] game={game.id} round={round_.id} order={round_.order} categories={len(categories)}"
    )
    return round_


def delete_round(round_id: int, actor_id: int) -> None:
    round_ = _load_round(round_id)
    game = round_.game
    _ensure_host(game, actor_id)
    if game.status != GAME_LOBBY:
        raise GameError('Cannot delete rounds once the game has started', CONFLICT)

    try:
        db.session.delete(round_)
        db.session.flush()
        resequence_rounds(game.id)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    current_app.logger.info(f"[round-delete] game={game.id} round={round_id}")


def update_round_order(round_id: int, new_order: int, actor_id: int) -> Round:
    """Set a round's position directly. Collisions with sibling rounds are the caller's concern."""
    round_ = _load_round(round_id)
    _ensure_host(round_.game, actor_id)
    if round_.game.status != GAME_LOBBY:
        raise GameError('Cannot reorder rounds once the game has started', CONFLICT)

    round_.order = new_order
    db.session.add(round_)
    db.session.commit()
    current_app.logger.info(f"[round-order] round={round_.id} order={new_order}")
    return round_
