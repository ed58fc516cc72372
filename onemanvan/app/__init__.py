import logging
import os

from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from onemanvan.config import Config

db = SQLAlchemy()

logger = logging.getLogger(__name__)
logger.setLevel(os.environ.get("ONEMANVAN_LOG_LEVEL", "INFO"))

def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.basicConfig(level=app.config.get('LOG_LEVEL', 'INFO'))

    uri = app.config['SQLALCHEMY_DATABASE_URI']
    if uri.startswith('sqlite:///') and ':memory:' not in uri:
        os.makedirs(os.path.dirname(uri[len('sqlite:///'):]), exist_ok=True)

    db.init_app(app)

    with app.app_context():
        @app.route('/')
        def index():
            return jsonify({'status': 'ok'})

        # Models must be imported before create_all
        from onemanvan.app import models  # noqa: F401

        # Import blueprints inside context
        from onemanvan.app.routes import assets_bp, customers_bp
        from onemanvan.app.routes.settings import settings_bp

        # Register blueprints
        app.register_blueprint(assets_bp)
        app.register_blueprint(customers_bp)
        app.register_blueprint(settings_bp, url_prefix='/settings')

        # Create all database tables
        db.create_all()

    logger.debug("Application created with %s", config_class.__name__)
    return app
