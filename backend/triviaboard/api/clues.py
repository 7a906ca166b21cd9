from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user

from triviaboard.errors import GameError
from triviaboard.models import ROLE_HOST, ROLE_OPERATOR
from triviaboard.services.games import clues as clue_service
from triviaboard.services.games import scoring
from .errors import roles_required, json_int

clues = Blueprint('clues', __name__)


@clues.route('/clues/<int:clue_id>', methods=['GET'])
@login_required
def get_clue(clue_id):
    clue = clue_service.get_clue(clue_id)
    payload = clue.to_dict()
    payload['game_id'] = clue.game.id
    payload['board_state'] = clue.board_state.to_dict() if clue.board_state else None
    return jsonify(payload)


@clues.route('/clues/<int:clue_id>/select', methods=['POST'])
@login_required
def select_clue(clue_id):
    data = request.get_json(silent=True) or {}
    state = clue_service.select_clue(clue_id, json_int(data, 'team_id'), current_user.id)
    return jsonify(state.to_dict())


@clues.route('/clues/<int:clue_id>/state', methods=['PUT'])
@login_required
@roles_required(ROLE_HOST, ROLE_OPERATOR)
def override_clue_state(clue_id):
    data = request.get_json(silent=True) or {}
    state = clue_service.override_clue_state(clue_id, data.get('state'), current_user.id)
    return jsonify(state.to_dict())


@clues.route('/clues/<int:clue_id>/reset', methods=['POST'])
@login_required
@roles_required(ROLE_HOST, ROLE_OPERATOR)
def reset_clue_state(clue_id):
    return jsonify(clue_service.reset_clue_state(clue_id, current_user.id).to_dict())


@clues.route('/clues/<int:clue_id>/responses', methods=['GET'])
@login_required
def list_responses(clue_id):
    return jsonify([r.to_dict() for r in scoring.list_responses_for_clue(clue_id)])


@clues.route('/clues/<int:clue_id>/responses', methods=['POST'])
@login_required
def submit_response(clue_id):
    data = request.get_json(silent=True) or {}
    response = scoring.submit_response(
        clue_id=clue_id,
        team_id=json_int(data, 'team_id'),
        submitted_by_id=current_user.id,
        answer=data.get('answer') or '',
    )
    return jsonify(response.to_dict()), 201


@clues.route('/responses/<int:response_id>/validate', methods=['POST'])
@login_required
@roles_required(ROLE_HOST, ROLE_OPERATOR)
def validate_response(response_id):
    data = request.get_json(silent=True) or {}
    is_correct = data.get('is_correct')
    if not isinstance(is_correct, bool):
        raise GameError('is_correct must be a boolean')
    response = scoring.validate_response(
        response_id,
        is_correct=is_correct,
        operator_id=current_user.id,
        awarded_value=json_int(data, 'awarded_value', required=False),
    )
    return jsonify(response.to_dict())
