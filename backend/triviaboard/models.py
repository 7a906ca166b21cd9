from datetime import datetime, timezone

from flask_login import UserMixin

from triviaboard import db, bcrypt

ROLE_HOST = 'HOST'
ROLE_OPERATOR = 'OPERATOR'
ROLE_PLAYER = 'PLAYER'
USER_ROLES = (ROLE_HOST, ROLE_OPERATOR, ROLE_PLAYER)

GAME_LOBBY = 'LOBBY'
GAME_IN_PROGRESS = 'IN_PROGRESS'
GAME_FINISHED = 'FINISHED'

ROUND_JEOPARDY = 'JEOPARDY'
ROUND_DOUBLE_JEOPARDY = 'DOUBLE_JEOPARDY'
ROUND_FINAL_JEOPARDY = 'FINAL_JEOPARDY'
ROUND_TYPES = (ROUND_JEOPARDY, ROUND_DOUBLE_JEOPARDY, ROUND_FINAL_JEOPARDY)

CLUE_AVAILABLE = 'AVAILABLE'
CLUE_PENDING = 'PENDING'
CLUE_CORRECT = 'CORRECT'
CLUE_INCORRECT = 'INCORRECT'
CLUE_STATES = (CLUE_AVAILABLE, CLUE_PENDING, CLUE_CORRECT, CLUE_INCORRECT)


def utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(db.String(16), nullable=False, default=ROLE_PLAYER)  # HOST, OPERATOR, PLAYER
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'username': self.username,
            'role': self.role,
        }


class Game(db.Model):
    __tablename__ = 'game'
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    host_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    team_limit = db.Column(db.Integer, nullable=False, default=4)
    status = db.Column(db.String(16), nullable=False, default=GAME_LOBBY)  # LOBBY, IN_PROGRESS, FINISHED
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    host = db.relationship('User')
    teams = db.relationship('Team', back_populates='game', order_by='Team.order',
                            cascade='all, delete-orphan')
    rounds = db.relationship('Round', back_populates='game', order_by='Round.order',
                             cascade='all, delete-orphan')
    clue_states = db.relationship('ClueState', back_populates='game', cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'host_id': self.host_id,
            'host': self.host.to_dict() if self.host else None,
            'team_limit': self.team_limit,
            'status': self.status,
            'created_at': _iso(self.created_at),
            'teams': [t.to_dict() for t in self.teams],
            'rounds': [r.to_dict() for r in self.rounds],
            'clue_states': [s.to_dict() for s in self.clue_states],
        }


class Team(db.Model):
    __tablename__ = 'team'
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    order = db.Column(db.Integer, nullable=False)
    score = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)

    game = db.relationship('Game', back_populates='teams')
    members = db.relationship('TeamMember', back_populates='team', order_by='TeamMember.joined_at',
                              cascade='all, delete-orphan')
    responses = db.relationship('TeamResponse', back_populates='team', cascade='all, delete-orphan')
    # no delete cascade: removing a team clears picked_by_team_id on its claims
    picked_clue_states = db.relationship('ClueState', back_populates='picked_by_team')

    def to_dict(self, include_members=True):
        data = {
            'id': self.id,
            'game_id': self.game_id,
            'name': self.name,
            'order': self.order,
            'score': self.score,
        }
        if include_members:
            data['members'] = [m.to_dict() for m in self.members]
        return data


class TeamMember(db.Model):
    __tablename__ = 'team_member'
    __table_args__ = (
        db.UniqueConstraint('team_id', 'user_id', name='uq_team_member_team_user'),
    )
    id = db.Column(db.Integer, primary_key=True)
    team_id = db.Column(db.Integer, db.ForeignKey('team.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    is_captain = db.Column(db.Boolean, nullable=False, default=False)
    joined_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)

    team = db.relationship('Team', back_populates='members')
    user = db.relationship('User')

    def to_dict(self):
        return {
            'id': self.id,
            'team_id': self.team_id,
            'user_id': self.user_id,
            'is_captain': self.is_captain,
            'joined_at': _iso(self.joined_at),
            'user': self.user.to_dict() if self.user else None,
        }


class Round(db.Model):
    __tablename__ = 'round'
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    type = db.Column(db.String(32), nullable=False, default=ROUND_JEOPARDY)
    order = db.Column(db.Integer, nullable=False)

    game = db.relationship('Game', back_populates='rounds')
    categories = db.relationship('Category', back_populates='round', order_by='Category.order',
                                 cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'game_id': self.game_id,
            'type': self.type,
            'order': self.order,
            'categories': [c.to_dict() for c in self.categories],
        }


class Category(db.Model):
    __tablename__ = 'category'
    id = db.Column(db.Integer, primary_key=True)
    round_id = db.Column(db.Integer, db.ForeignKey('round.id'), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    order = db.Column(db.Integer, nullable=False)

    round = db.relationship('Round', back_populates='categories')
    clues = db.relationship('Clue', back_populates='category', order_by='Clue.value',
                            cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'round_id': self.round_id,
            'title': self.title,
            'order': self.order,
            'clues': [c.to_dict() for c in self.clues],
        }


class Clue(db.Model):
    __tablename__ = 'clue'
    id = db.Column(db.Integer, primary_key=True)
    category_id = db.Column(db.Integer, db.ForeignKey('category.id'), nullable=False, index=True)
    question = db.Column(db.Text, nullable=False)
    answer = db.Column(db.Text, nullable=False)
    value = db.Column(db.Integer, nullable=False)
    media_url = db.Column(db.String(500), nullable=True)
    is_daily_double = db.Column(db.Boolean, nullable=False, default=False)

    category = db.relationship('Category', back_populates='clues')
    board_state = db.relationship('ClueState', back_populates='clue', uselist=False,
                                  cascade='all, delete-orphan')
    responses = db.relationship('TeamResponse', back_populates='clue', cascade='all, delete-orphan')

    @property
    def game(self):
        return self.category.round.game

    def to_dict(self):
        return {
            'id': self.id,
            'category_id': self.category_id,
            'question': self.question,
            'answer': self.answer,
            'value': self.value,
            'media_url': self.media_url,
            'is_daily_double': self.is_daily_double,
        }


class ClueState(db.Model):
    """Live board status of one clue. At most one row exists per clue."""
    __tablename__ = 'clue_state'
    id = db.Column(db.Integer, primary_key=True)
    clue_id = db.Column(db.Integer, db.ForeignKey('clue.id'), nullable=False, unique=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    state = db.Column(db.String(16), nullable=False, default=CLUE_AVAILABLE)  # AVAILABLE, PENDING, CORRECT, INCORRECT
    picked_by_team_id = db.Column(db.Integer, db.ForeignKey('team.id'), nullable=True)
    resolved_by_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    clue = db.relationship('Clue', back_populates='board_state')
    game = db.relationship('Game', back_populates='clue_states')
    picked_by_team = db.relationship('Team', back_populates='picked_clue_states')
    resolved_by = db.relationship('User')

    def to_dict(self):
        return {
            'id': self.id,
            'clue_id': self.clue_id,
            'game_id': self.game_id,
            'state': self.state,
            'picked_by_team_id': self.picked_by_team_id,
            'resolved_by_id': self.resolved_by_id,
        }


class TeamResponse(db.Model):
    __tablename__ = 'team_response'
    id = db.Column(db.Integer, primary_key=True)
    team_id = db.Column(db.Integer, db.ForeignKey('team.id'), nullable=False, index=True)
    clue_id = db.Column(db.Integer, db.ForeignKey('clue.id'), nullable=False, index=True)
    submitted_by_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    submitted_answer = db.Column(db.Text, nullable=False)
    is_correct = db.Column(db.Boolean, nullable=True)
    awarded_value = db.Column(db.Integer, nullable=True)
    validated_by_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    validated_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)

    team = db.relationship('Team', back_populates='responses')
    clue = db.relationship('Clue', back_populates='responses')
    submitted_by = db.relationship('User', foreign_keys=[submitted_by_id])
    validated_by = db.relationship('User', foreign_keys=[validated_by_id])

    def to_dict(self):
        return {
            'id': self.id,
            'team_id': self.team_id,
            'clue_id': self.clue_id,
            'submitted_by_id': self.submitted_by_id,
            'submitted_answer': self.submitted_answer,
            'is_correct': self.is_correct,
            'awarded_value': self.awarded_value,
            'validated_by_id': self.validated_by_id,
            'validated_at': _iso(self.validated_at),
            'created_at': _iso(self.created_at),
            'team': self.team.to_dict() if self.team else None,
            'clue': self.clue.to_dict() if self.clue else None,
            'submitted_by': self.submitted_by.to_dict() if self.submitted_by else None,
            'validated_by': self.validated_by.to_dict() if self.validated_by else None,
        }
