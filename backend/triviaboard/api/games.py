from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user

from triviaboard.errors import GameError
from triviaboard.models import ROLE_HOST
from triviaboard.services.games import lifecycle
from triviaboard.services.games.clues import get_board
from .errors import roles_required, json_int

games = Blueprint('games', __name__)


@games.route('', methods=['POST'])
@login_required
@roles_required(ROLE_HOST)
def create_game():
    data = request.get_json(silent=True) or {}
    game = lifecycle.create_game(
        host_id=current_user.id,
        title=data.get('title') or '',
        team_limit=json_int(data, 'team_limit', required=False),
    )
    return jsonify(game.to_dict()), 201


@games.route('', methods=['GET'])
@login_required
@roles_required(ROLE_HOST)
def list_games():
    return jsonify([g.to_dict() for g in lifecycle.list_games_for_host(current_user.id)])


@games.route('/<int:game_id>', methods=['GET'])
@login_required
def get_game(game_id):
    return jsonify(lifecycle.get_game(game_id).to_dict())


@games.route('/<int:game_id>', methods=['PATCH'])
@login_required
@roles_required(ROLE_HOST)
def update_game(game_id):
    data = request.get_json(silent=True) or {}
    settings = {}
    if 'title' in data:
        if not isinstance(data['title'], str):
            raise GameError('title must be a string')
        settings['title'] = data['title']
    if 'team_limit' in data:
        settings['team_limit'] = json_int(data, 'team_limit')
    game = lifecycle.update_game_settings(game_id, settings, current_user.id)
    return jsonify(game.to_dict())


@games.route('/<int:game_id>/start', methods=['POST'])
@login_required
@roles_required(ROLE_HOST)
def start_game(game_id):
    return jsonify(lifecycle.start_game(game_id, current_user.id).to_dict())


@games.route('/<int:game_id>/finish', methods=['POST'])
@login_required
@roles_required(ROLE_HOST)
def finish_game(game_id):
    return jsonify(lifecycle.finish_game(game_id, current_user.id).to_dict())


@games.route('/<int:game_id>', methods=['DELETE'])
@login_required
@roles_required(ROLE_HOST)
def delete_game(game_id):
    lifecycle.delete_game(game_id, current_user.id)
    return jsonify({'message': 'Game deleted'})


@games.route('/<int:game_id>/board', methods=['GET'])
@login_required
def game_board(game_id):
    return jsonify({'game_id': game_id, 'clues': get_board(game_id)})
