import pytest

from triviaboard import db
from triviaboard.errors import GameError, FORBIDDEN, NOT_FOUND
from triviaboard.models import Team, TeamResponse
from triviaboard.services.games import clues, scoring


def _team_score(team_id):
    return db.session.get(Team, team_id).score


def test_submit_creates_unvalidated_response(live_game, users):
    response = scoring.submit_response(live_game.clue_ids[0], live_game.team_a, users.alice, 'What is the Sun?')
    assert response.submitted_answer == 'What is the Sun?'
    assert response.is_correct is None
    assert response.awarded_value is None
    assert response.validated_by_id is None


def test_submit_requires_membership(live_game, users):
    with pytest.raises(GameError, match='Only team members') as exc:
        scoring.submit_response(live_game.clue_ids[0], live_game.team_a, users.bob, 'Sun')
    assert exc.value.kind == FORBIDDEN


def test_multiple_submissions_listed_in_order(live_game, users):
    clue_id = live_game.clue_ids[0]
    first = scoring.submit_response(clue_id, live_game.team_a, users.alice, 'Moon').id
    second = scoring.submit_response(clue_id, live_game.team_b, users.bob, 'Sun').id
    third = scoring.submit_response(clue_id, live_game.team_a, users.alice, 'The Sun').id
    listed = scoring.list_responses_for_clue(clue_id)
    assert [r.id for r in listed] == [first, second, third]


def test_correct_answer_adds_clue_value(live_game, users):
    clue_id = live_game.clue_ids[1]  # 400 points
    clues.select_clue(clue_id, live_game.team_a, users.alice)
    response = scoring.submit_response(clue_id, live_game.team_a, users.alice, 'Water')

    validated = scoring.validate_response(response.id, True, users.operator)

    assert validated.is_correct is True
    assert validated.awarded_value == 400
    assert validated.validated_by_id == users.operator
    assert validated.validated_at is not None
    assert _team_score(live_game.team_a) == 400
    state = clues.find_clue_state(clue_id)
    assert (state.state, state.resolved_by_id) == ('CORRECT', users.operator)


def test_incorrect_answer_subtracts_clue_value(live_game, users):
    clue_id = live_game.clue_ids[1]
    clues.select_clue(clue_id, live_game.team_b, users.bob)
    response = scoring.submit_response(clue_id, live_game.team_b, users.bob, 'Fire')

    validated = scoring.validate_response(response.id, False, users.host)

    assert validated.awarded_value == -400
    assert _team_score(live_game.team_b) == -400
    assert clues.find_clue_state(clue_id).state == 'INCORRECT'


def test_explicit_awarded_value_wins(live_game, users):
    clue_id = live_game.clue_ids[2]
    response = scoring.submit_response(clue_id, live_game.team_a, users.alice, 'Armstrong')
    scoring.validate_response(response.id, True, users.operator, awarded_value=1000)
    assert _team_score(live_game.team_a) == 1000

    zero = scoring.submit_response(clue_id, live_game.team_a, users.alice, 'Aldrin')
    validated = scoring.validate_response(zero.id, False, users.operator, awarded_value=0)
    assert validated.awarded_value == 0
    assert _team_score(live_game.team_a) == 1000


def test_validate_without_board_row_leaves_board_untouched(live_game, users):
    clue_id = live_game.clue_ids[0]
    response = scoring.submit_response(clue_id, live_game.team_a, users.alice, 'Sun')
    scoring.validate_response(response.id, True, users.operator)
    assert clues.find_clue_state(clue_id) is None
    assert _team_score(live_game.team_a) == 200


def test_validate_permissions(live_game, users):
    response = scoring.submit_response(live_game.clue_ids[0], live_game.team_a, users.alice, 'Sun')
    with pytest.raises(GameError, match='Only operators or hosts') as exc:
        scoring.validate_response(response.id, True, users.alice)
    assert exc.value.kind == FORBIDDEN
    with pytest.raises(GameError, match='Operator not found'):
        scoring.validate_response(response.id, True, 999)
    with pytest.raises(GameError) as exc:
        scoring.validate_response(999, True, users.operator)
    assert exc.value.kind == NOT_FOUND


def test_validation_rolls_back_as_a_unit(live_game, users, monkeypatch):
    clue_id = live_game.clue_ids[1]
    clues.select_clue(clue_id, live_game.team_a, users.alice)
    response_id = scoring.submit_response(clue_id, live_game.team_a, users.alice, 'Water').id

    def explode(*args, **kwargs):
        raise RuntimeError('database went away')

    monkeypatch.setattr(scoring, '_resolve_clue_state', explode)
    with pytest.raises(RuntimeError):
        scoring.validate_response(response_id, True, users.operator)

    response = db.session.get(TeamResponse, response_id)
    assert response.is_correct is None
    assert response.awarded_value is None
    assert response.validated_at is None
    assert _team_score(live_game.team_a) == 0
    assert clues.find_clue_state(clue_id).state == 'PENDING'
