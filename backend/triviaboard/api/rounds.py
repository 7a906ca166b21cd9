from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user

from triviaboard.errors import GameError
from triviaboard.models import ROLE_HOST, ROUND_JEOPARDY
from triviaboard.services.games import board
from .errors import roles_required, json_int

rounds = Blueprint('rounds', __name__)


@rounds.route('/games/<int:game_id>/rounds', methods=['GET'])
@login_required
def list_rounds(game_id):
    return jsonify([r.to_dict() for r in board.list_rounds(game_id)])


@rounds.route('/games/<int:game_id>/rounds', methods=['POST'])
@login_required
@roles_required(ROLE_HOST)
def create_round(game_id):
    data = request.get_json(silent=True) or {}
    categories = data.get('categories') or []
    if not isinstance(categories, list):
        raise GameError('categories must be a list')
    round_ = board.create_round(
        actor_id=current_user.id,
        game_id=game_id,
        categories=categories,
        type=data.get('type') or ROUND_JEOPARDY,
        order=json_int(data, 'order', required=False),
    )
    return jsonify(round_.to_dict()), 201


@rounds.route('/rounds/<int:round_id>', methods=['DELETE'])
@login_required
@roles_required(ROLE_HOST)
def delete_round(round_id):
    board.delete_round(round_id, current_user.id)
    return jsonify({'message': 'Round deleted'})


@rounds.route('/rounds/<int:round_id>/order', methods=['PATCH'])
@login_required
@roles_required(ROLE_HOST)
def update_round_order(round_id):
    data = request.get_json(silent=True) or {}
    round_ = board.update_round_order(round_id, json_int(data, 'order'), current_user.id)
    return jsonify(round_.to_dict())
