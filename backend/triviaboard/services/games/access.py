from typing import Callable, Iterable, Optional

from triviaboard import db
from triviaboard.errors import GameError, NOT_FOUND, FORBIDDEN
from triviaboard.models import User, TeamMember


def load_user(user_id: int, message: str = 'User not found') -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise GameError(message, NOT_FOUND)
    return user


def find_membership(team_id: int, user_id: int) -> Optional[TeamMember]:
    return TeamMember.query.filter_by(team_id=team_id, user_id=user_id).first()


def is_host_of(game) -> Callable[[int], bool]:
    return lambda actor_id: game.host_id == actor_id


def is_member_of(team_id: int) -> Callable[[int], bool]:
    return lambda actor_id: find_membership(team_id, actor_id) is not None


def ensure_capability(
    actor_id: int,
    message: str,
    roles: Iterable[str] = (),
    predicate: Optional[Callable[[int], bool]] = None,
    actor: Optional[User] = None,
) -> None:
    """Raise a forbidden GameError unless the actor is allowed.

    The actor passes when ``predicate(actor_id)`` holds (host ownership, team
    membership) or when they hold one of ``roles``. The user row is only
    loaded when the role branch is actually needed.
    """
    if predicate is not None and predicate(actor_id):
        return
    roles = tuple(roles)
    if roles:
        if actor is None:
            actor = load_user(actor_id, 'Actor not found')
        if actor.role in roles:
            return
    raise GameError(message, FORBIDDEN)


def ensure_host(game, actor_id: int, message: str = 'Only the host can perform this action') -> None:
    ensure_capability(actor_id, message, predicate=is_host_of(game))
