from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or '*'

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from bingo.main import main
    flask_app.register_blueprint(main)

    from bingo.api.templates import templates
    flask_app.register_blueprint(templates, url_prefix='/api/bingo/templates')

    from bingo.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api/bingo/games')

    from bingo.api.feedback import feedback
    flask_app.register_blueprint(feedback, url_prefix='/api/feedback')

    from bingo.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    from bingo.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Login required'}), 401

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from bingo.seed import seed_default_templates
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            admin = User(username=flask_app.config['ADMIN_USERNAME'])
            admin.set_password(flask_app.config['ADMIN_PASSWORD'])
            db.session.add(admin)
            db.session.commit()

            added = seed_default_templates()
            print(f'Database has been reset and seeded with {added} templates!')

    @click.command('seed-templates')
    def seed_templates_command():
        """Inserts the built-in themes into an empty template table."""
        from bingo.seed import seed_default_templates
        with flask_app.app_context():
            added = seed_default_templates()
            flask_app.logger.info(f"[seed] added {added} default templates")
            print(f'Seeded {added} templates.')

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(seed_templates_command)

    return flask_app
