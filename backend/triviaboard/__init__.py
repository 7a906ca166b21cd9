from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
import click
from triviaboard.config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=flask_app.config.get('CORS_ORIGINS', []))

    # Import and register blueprints here
    from triviaboard.main import main
    flask_app.register_blueprint(main, url_prefix='/api')

    from triviaboard.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api/games')

    from triviaboard.api.teams import teams
    from triviaboard.api.rounds import rounds
    from triviaboard.api.clues import clues
    flask_app.register_blueprint(teams, url_prefix='/api')
    flask_app.register_blueprint(rounds, url_prefix='/api')
    flask_app.register_blueprint(clues, url_prefix='/api')

    from triviaboard.api.errors import register_error_handlers
    register_error_handlers(flask_app)

    # Flask-Login user loader
    from triviaboard.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Authentication required'}), 401

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from triviaboard.models import ROLE_HOST, ROLE_OPERATOR, ROLE_PLAYER
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            # Seed users
            users = [
                ('host', ROLE_HOST),
                ('operator', ROLE_OPERATOR),
                ('player1', ROLE_PLAYER),
                ('player2', ROLE_PLAYER),
            ]
            for username, role in users:
                user = User(username=username, email=f'{username}@example.com', role=role)
                user.set_password('password')
                db.session.add(user)

            db.session.commit()
            flask_app.logger.info(f"[db-reset] seeded {len(users)} users")
            click.echo('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
