from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user

from triviaboard.models import ROLE_HOST, ROLE_OPERATOR
from triviaboard.services.games import roster
from .errors import roles_required, json_int, json_bool

teams = Blueprint('teams', __name__)


@teams.route('/games/<int:game_id>/teams', methods=['GET'])
@login_required
def list_teams(game_id):
    return jsonify([t.to_dict() for t in roster.list_teams(game_id)])


@teams.route('/games/<int:game_id>/teams', methods=['POST'])
@login_required
def create_team(game_id):
    data = request.get_json(silent=True) or {}
    team = roster.create_team(
        game_id=game_id,
        name=data.get('name') or '',
        actor_id=current_user.id,
        make_captain=json_bool(data, 'make_captain', default=True),
    )
    return jsonify(team.to_dict()), 201


@teams.route('/teams/<int:team_id>/join', methods=['POST'])
@login_required
def join_team(team_id):
    data = request.get_json(silent=True) or {}
    team = roster.join_team(team_id, current_user.id, is_captain=json_bool(data, 'is_captain'))
    return jsonify(team.to_dict())


@teams.route('/teams/<int:team_id>/leave', methods=['POST'])
@login_required
def leave_team(team_id):
    return jsonify(roster.leave_team(team_id, current_user.id).to_dict())


@teams.route('/teams/<int:team_id>', methods=['DELETE'])
@login_required
def remove_team(team_id):
    roster.remove_team(team_id, current_user.id)
    return jsonify({'message': 'Team removed'})


@teams.route('/teams/<int:team_id>/score', methods=['POST'])
@login_required
@roles_required(ROLE_HOST, ROLE_OPERATOR)
def adjust_score(team_id):
    data = request.get_json(silent=True) or {}
    team = roster.adjust_score(team_id, json_int(data, 'delta'), current_user.id)
    return jsonify(team.to_dict())
