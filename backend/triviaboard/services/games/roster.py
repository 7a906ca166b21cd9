from typing import List

from flask import current_app
from sqlalchemy.exc import IntegrityError

from triviaboard import db
from triviaboard.errors import GameError, NOT_FOUND, CONFLICT, INVALID
from triviaboard.models import Team, TeamMember, GAME_LOBBY, ROLE_HOST, ROLE_OPERATOR
from .access import ensure_capability, find_membership, is_host_of, load_user
from .lifecycle import load_game


def load_team(team_id: int) -> Team:
    team = db.session.get(Team, team_id)
    if not team:
        raise GameError('Team not found', NOT_FOUND)
    return team


def _ensure_lobby(game) -> None:
    if game.status != GAME_LOBBY:
        raise GameError('Teams can only be managed while the game is in the lobby state', CONFLICT)


def resequence_teams(game_id: int) -> None:
    """Renumber a game's teams 1..N keeping their relative order.

    Only stages the changes; the caller commits them together with whatever
    caused the gap.
    """
    teams = Team.query.filter_by(game_id=game_id).order_by(Team.order.asc(), Team.id.asc()).all()
    for index, team in enumerate(teams, start=1):
        if team.order != index:
            team.order = index
            db.session.add(team)


def create_team(game_id: int, name: str, actor_id: int, make_captain: bool = True) -> Team:
    name = (name or '').strip()
    if not name:
        raise GameError('Team name is required')

    game = load_game(game_id)
    load_user(actor_id, 'Actor not found')
    _ensure_lobby(game)

    existing = Team.query.filter_by(game_id=game.id).count()
    if existing >= game.team_limit:
        raise GameError('Team limit reached for this game', INVALID)

    team = Team(name=name, order=existing + 1, game_id=game.id)
    if make_captain:
        team.members.append(TeamMember(user_id=actor_id, is_captain=True))
    try:
        db.session.add(team)
        db.session.flush()
        # A concurrent create may have slipped in between the count and the insert
        if Team.query.filter_by(game_id=game.id).count() > game.team_limit:
            raise GameError('Team limit reached for this game', INVALID)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    current_app.logger.info(f"[team-create] game={game.id} team={team.id} order={team.order}")
    return team


def list_teams(game_id: int) -> List[Team]:
    return Team.query.filter_by(game_id=game_id).order_by(Team.order.asc()).all()


def join_team(team_id: int, user_id: int, is_captain: bool = False) -> Team:
    team = load_team(team_id)
    if find_membership(team.id, user_id):
        raise GameError('User already joined this team', CONFLICT)

    try:
        db.session.add(TeamMember(team_id=team.id, user_id=user_id, is_captain=is_captain))
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise GameError('User already joined this team', CONFLICT)
    current_app.logger.info(f"[team-join] team={team.id} user={user_id} captain={is_captain}")
    return team


def leave_team(team_id: int, user_id: int) -> Team:
    membership = find_membership(team_id, user_id)
    if not membership:
        raise GameError('Membership not found', NOT_FOUND)

    db.session.delete(membership)
    db.session.commit()
    team = load_team(team_id)
    current_app.logger.info(f"[team-leave] team={team_id} user={user_id}")
    return team


def remove_team(team_id: int, actor_id: int) -> None:
    team = load_team(team_id)
    game = team.game
    _ensure_lobby(game)
    ensure_capability(actor_id, 'Only the host can remove teams', predicate=is_host_of(game))

    try:
        db.session.delete(team)
        db.session.flush()
        resequence_teams(game.id)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    current_app.logger.info(f"[team-remove] game={game.id} team={team_id}")


def adjust_score(team_id: int, delta: int, actor_id: int) -> Team:
    """Apply a signed manual score correction."""
    team = load_team(team_id)
    actor = load_user(actor_id, 'Actor not found')
    ensure_capability(
        actor_id,
        'Updating team score requires host or operator privileges',
        roles=(ROLE_HOST, ROLE_OPERATOR),
        predicate=is_host_of(team.game),
        actor=actor,
    )

    try:
        Team.query.filter_by(id=team.id).update(
            {Team.score: Team.score + delta}, synchronize_session=False
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    current_app.logger.info(f"[score] team={team.id} delta={delta} by={actor_id} score={team.score}")
    return team
