import os
import datetime
import logging
from logging.handlers import RotatingFileHandler
from urllib.parse import urlparse

from flask import Flask, send_from_directory
from flask_cors import CORS
from dotenv import load_dotenv
from werkzeug.middleware.proxy_fix import ProxyFix

# --- Paths ---
package_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.abspath(os.path.join(package_dir, '..'))

if load_dotenv():
    print("INFO: loaded settings from .env")
else:
    print("WARNING: no .env file found; settings must come from the environment.")


def _mongo_dbname(mongo_uri):
    try:
        db_name = urlparse(mongo_uri).path.lstrip('/')
    except ValueError:
        db_name = None
    return db_name or 'blog_db'


def create_app(test_config=None):
    app = Flask(__name__,
                template_folder=os.path.join(project_root, 'frontend', 'templates'),
                static_folder=os.path.join(project_root, 'frontend', 'static'))

    # --- Base settings ---
    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'dev')
    app.config['JWT_SECRET_KEY'] = os.environ.get('JWT_SECRET_KEY')
    app.config['JWT_ACCESS_TOKEN_EXPIRES'] = datetime.timedelta(days=int(os.environ.get('JWT_EXPIRE_DAYS', 30)))
    app.config['MONGO_URI'] = (os.environ.get("MONGO_URI") or os.environ.get("MONGO_URL")
                               or os.environ.get("MONGODB_URI"))
    app.config['UPLOAD_FOLDER'] = os.environ.get('UPLOAD_FOLDER',
                                                 os.path.join(project_root, 'frontend', 'static', 'uploads'))
    app.config['MAX_CONTENT_LENGTH'] = 5 * 1024 * 1024
    app.config['LOG_DIR'] = os.environ.get('LOG_DIR', 'logs')

    if test_config:
        app.config.from_mapping(test_config)

    # --- Logging ---
    if not app.testing:
        log_dir = app.config['LOG_DIR']
        if not os.path.exists(log_dir):
            os.mkdir(log_dir)
        file_handler = RotatingFileHandler(os.path.join(log_dir, 'blog.log'), maxBytes=10240, backupCount=10)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'))
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)
    app.logger.setLevel(logging.INFO)
    app.logger.info('Blog API startup')

    if not app.config['JWT_SECRET_KEY']:
        app.logger.warning('JWT_SECRET_KEY is not set; falling back to a development key.')
        app.config['JWT_SECRET_KEY'] = 'local-dev-jwt-secret-key-for-testing'

    # --- Database ---
    mongo_uri = app.config['MONGO_URI']
    if not mongo_uri:
        raise ValueError("MONGO_URI (or MONGO_URL / MONGODB_URI) environment variable is not set.")
    app.config.setdefault('MONGO_DBNAME', _mongo_dbname(mongo_uri))

    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)
    CORS(app, supports_credentials=True, resources={r"/api/*": {"origins": "*"}})

    # --- Extensions ---
    from blog_backend.extensions import mongo, jwt, bcrypt
    mongo.init_app(app)
    jwt.init_app(app)
    bcrypt.init_app(app)

    # --- Error handlers ---
    from blog_backend.errors import register_error_handlers
    register_error_handlers(app)

    # --- Blueprints ---
    from blog_backend.routes.auth_routes import auth_bp
    from blog_backend.routes.post_routes import posts_bp
    from blog_backend.routes.category_routes import categories_bp
    from blog_backend.routes.page_routes import pages_bp

    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(posts_bp, url_prefix='/api/posts')
    app.register_blueprint(categories_bp, url_prefix='/api/categories')
    app.register_blueprint(pages_bp)

    @app.route('/uploads/<path:filename>', endpoint='uploaded_file')
    def uploaded_file(filename):
        return send_from_directory(app.config['UPLOAD_FOLDER'], filename)

    # --- CLI ---
    @app.cli.command("init-db")
    def init_db_command():
        """Create indexes, default categories and the admin account."""
        from blog_backend.initialize import initialize_database
        initialize_database()
        print("Database initialized.")

    return app


if __name__ == '__main__':
    app = create_app()
    port = int(os.environ.get('PORT', 5000))
    app.run(host='0.0.0.0', port=port, debug=True)
