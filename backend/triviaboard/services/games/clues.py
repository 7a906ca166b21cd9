"""Live clue board: claiming, resolving and resetting clues.

A clue's board state moves AVAILABLE -> PENDING when a team claims it, then
PENDING -> CORRECT or INCORRECT once an operator validates the team's
response (see ``scoring``). ``reset_clue_state`` is the only way back to
AVAILABLE. ``override_clue_state`` lets an operator write any state directly
and deliberately skips the claim rules.

Claims are single conditional writes: either an INSERT guarded by the unique
``clue_state.clue_id`` constraint or an UPDATE filtered on the AVAILABLE
state. Whichever writer loses sees "already taken".
"""
from typing import List

from flask import current_app
from sqlalchemy.exc import IntegrityError

from triviaboard import db
from triviaboard.errors import GameError, NOT_FOUND, CONFLICT
from triviaboard.models import (
    Clue, ClueState, Team, utcnow,
    GAME_IN_PROGRESS, CLUE_AVAILABLE, CLUE_PENDING, CLUE_STATES,
)
from .access import ensure_capability, is_member_of, load_user
from .lifecycle import load_game


def get_clue(clue_id: int) -> Clue:
    clue = db.session.get(Clue, clue_id)
    if not clue:
        raise GameError('Clue not found', NOT_FOUND)
    return clue


def find_clue_state(clue_id: int):
    return ClueState.query.filter_by(clue_id=clue_id).first()


def _conditional_claim(state_id: int, team_id: int) -> bool:
    claimed = ClueState.query.filter_by(id=state_id, state=CLUE_AVAILABLE).update(
        {
            ClueState.state: CLUE_PENDING,
            ClueState.picked_by_team_id: team_id,
            ClueState.updated_at: utcnow(),
        },
        synchronize_session=False,
    )
    return claimed == 1


def _already_taken(clue_id: int, team_id: int) -> GameError:
    current_app.logger.warning(f"[select-reject] clue={clue_id} team={team_id} already taken")
    return GameError('Clue has already been taken', CONFLICT)


def select_clue(clue_id: int, team_id: int, actor_id: int) -> ClueState:
    clue = get_clue(clue_id)
    game = clue.game
    if game.status != GAME_IN_PROGRESS:
        raise GameError('Clues can only be selected while the game is in progress', CONFLICT)

    team = db.session.get(Team, team_id)
    state = find_clue_state(clue.id)
    if not team:
        raise GameError('Team not found', NOT_FOUND)
    if team.game_id != game.id:
        raise GameError('Team and clue do not belong to the same game')
    ensure_capability(
        actor_id,
        'Only team members can select a clue on behalf of their team',
        predicate=is_member_of(team.id),
    )
    if state and state.state != CLUE_AVAILABLE:
        raise _already_taken(clue.id, team.id)

    if state is None:
        state = ClueState(clue_id=clue.id, game_id=game.id, state=CLUE_PENDING, picked_by_team_id=team.id)
        try:
            db.session.add(state)
            db.session.commit()
            current_app.logger.info(f"[select] clue={clue.id} team={team.id} game={game.id}")
            return state
        except IntegrityError:
            # Another writer created the row first; fall through to the guarded update
            db.session.rollback()
            state = find_clue_state(clue.id)
            if state is None:
                raise _already_taken(clue.id, team.id)

    try:
        if not _conditional_claim(state.id, team.id):
            raise _already_taken(clue.id, team.id)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    current_app.logger.info(f"[select] clue={clue.id} team={team.id} game={game.id}")
    return state


def override_clue_state(clue_id: int, state: str, resolved_by_id: int) -> ClueState:
    """Operator override: write ``state`` onto an existing board row as-is.

    Only checks that the clue, the user and the board row exist. No role or
    transition rules apply here; use ``select_clue`` and
    ``scoring.validate_response`` for the guarded path.
    """
    if state not in CLUE_STATES:
        raise GameError(f'Unknown clue state: {state}')
    clue = get_clue(clue_id)
    load_user(resolved_by_id, 'Operator not found')
    existing = find_clue_state(clue.id)
    if not existing:
        raise GameError('Clue state not found', NOT_FOUND)

    existing.state = state
    existing.resolved_by_id = resolved_by_id
    db.session.add(existing)
    db.session.commit()
    current_app.logger.info(f"[override] clue={clue.id} state={state} by={resolved_by_id}")
    return existing


def reset_clue_state(clue_id: int, actor_id: int) -> ClueState:
    clue = get_clue(clue_id)
    load_user(actor_id, 'Operator not found')
    state = find_clue_state(clue.id)

    if state is None:
        state = ClueState(clue_id=clue.id, game_id=clue.game.id, state=CLUE_AVAILABLE)
    else:
        state.state = CLUE_AVAILABLE
        state.picked_by_team_id = None
        state.resolved_by_id = None
    try:
        db.session.add(state)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    current_app.logger.info(f"[reset] clue={clue.id} by={actor_id}")
    return state


def get_board(game_id: int) -> List[dict]:
    """Flatten a game's rounds into one entry per clue with its live state.

    Clues that were never claimed have no board row and report AVAILABLE.
    """
    game = load_game(game_id)
    states = {s.clue_id: s for s in ClueState.query.filter_by(game_id=game.id).all()}
    board = []
    for round_ in game.rounds:
        for category in round_.categories:
            for clue in category.clues:
                state = states.get(clue.id)
                board.append({
                    'clue_id': clue.id,
                    'round_id': round_.id,
                    'category_id': category.id,
                    'category': category.title,
                    'value': clue.value,
                    'is_daily_double': clue.is_daily_double,
                    'state': state.state if state else CLUE_AVAILABLE,
                    'picked_by_team_id': state.picked_by_team_id if state else None,
                })
    return board
