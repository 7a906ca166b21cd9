from flask import Blueprint, request, jsonify
from flask_login import login_user, logout_user, login_required, current_user
from sqlalchemy import or_

from triviaboard import db
from triviaboard.models import User, USER_ROLES, ROLE_PLAYER

main = Blueprint('main', __name__)


@main.route('/register', methods=['POST'])
def register():
    data = request.get_json(silent=True) or {}
    username = (data.get('username') or '').strip()
    email = (data.get('email') or '').strip().lower()
    password = data.get('password')
    role = data.get('role') or ROLE_PLAYER
    if not all([username, email, password]):
        return jsonify({'error': 'Username, email and password are required'}), 400
    if role not in USER_ROLES:
        return jsonify({'error': f'Unknown role: {role}'}), 400

    if User.query.filter(or_(User.username == username, User.email == email)).first():
        return jsonify({'error': 'Username or email already exists'}), 400

    new_user = User(username=username, email=email, role=role)
    new_user.set_password(password)
    db.session.add(new_user)
    db.session.commit()
    login_user(new_user)
    return jsonify({'success': True, 'user': new_user.to_dict()}), 201


@main.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    user = User.query.filter_by(username=data.get('username')).first()
    if user and user.check_password(data.get('password') or ''):
        login_user(user, remember=True)
        return jsonify({'success': True, 'user': user.to_dict()})
    return jsonify({'success': False, 'error': 'Invalid username or password'}), 401


@main.route('/check_login', methods=['GET'])
@login_required
def check_login():
    return jsonify({'success': True, 'user': current_user.to_dict()})


@main.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'success': True})
