from typing import List, Optional

from flask import current_app

from triviaboard import db
from triviaboard.errors import GameError, NOT_FOUND
from triviaboard.models import (
    ClueState, Team, TeamResponse, utcnow,
    ROLE_HOST, ROLE_OPERATOR, CLUE_CORRECT, CLUE_INCORRECT,
)
from .access import ensure_capability, is_member_of, load_user
from .clues import get_clue


def submit_response(clue_id: int, team_id: int, submitted_by_id: int, answer: str) -> TeamResponse:
    """Record a team's answer. Repeat submissions for the same clue are kept."""
    ensure_capability(
        submitted_by_id,
        'Only team members can submit answers for their team',
        predicate=is_member_of(team_id),
    )
    clue = get_clue(clue_id)

    response = TeamResponse(
        team_id=team_id,
        clue_id=clue.id,
        submitted_by_id=submitted_by_id,
        submitted_answer=answer or '',
    )
    db.session.add(response)
    db.session.commit()
    current_app.logger.info(f"[submit] response={response.id} clue={clue.id} team={team_id}")
    return response


def list_responses_for_clue(clue_id: int) -> List[TeamResponse]:
    return (
        TeamResponse.query.filter_by(clue_id=clue_id)
        .order_by(TeamResponse.created_at.asc(), TeamResponse.id.asc())
        .all()
    )


def _mark_response(response: TeamResponse, is_correct: bool, score_delta: int, operator_id: int) -> None:
    response.is_correct = is_correct
    response.awarded_value = score_delta
    response.validated_by_id = operator_id
    response.validated_at = utcnow()
    db.session.add(response)
    db.session.flush()


def _apply_score_delta(team_id: int, score_delta: int) -> None:
    if score_delta == 0:
        return
    Team.query.filter_by(id=team_id).update(
        {Team.score: Team.score + score_delta}, synchronize_session=False
    )


def _resolve_clue_state(clue_id: int, is_correct: bool, operator_id: int) -> None:
    state = ClueState.query.filter_by(clue_id=clue_id).first()
    if not state:
        return
    state.state = CLUE_CORRECT if is_correct else CLUE_INCORRECT
    state.resolved_by_id = operator_id
    db.session.add(state)


def validate_response(
    response_id: int,
    is_correct: bool,
    operator_id: int,
    awarded_value: Optional[int] = None,
) -> TeamResponse:
    """Judge a response and settle its score and board state atomically.

    The delta is ``awarded_value`` when given, otherwise plus or minus the
    clue value. The response update, the team's score increment and the
    clue state change are committed together or not at all.
    """
    operator = load_user(operator_id, 'Operator not found')
    ensure_capability(
        operator_id,
        'Only operators or hosts can validate responses',
        roles=(ROLE_OPERATOR, ROLE_HOST),
        actor=operator,
    )

    response = db.session.get(TeamResponse, response_id)
    if not response:
        raise GameError('Response not found', NOT_FOUND)

    clue_value = response.clue.value
    score_delta = awarded_value if awarded_value is not None else (clue_value if is_correct else -clue_value)

    try:
        _mark_response(response, is_correct, score_delta, operator_id)
        _apply_score_delta(response.team_id, score_delta)
        _resolve_clue_state(response.clue_id, is_correct, operator_id)
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.error(f"[validate-abort] response={response_id} rolled back")
        raise
    current_app.logger.info(
        f"[validate] response={response.id} team={response.team_id} correct={is_correct} delta={score_delta}"
    )
    return response
