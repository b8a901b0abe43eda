"""Blueprint registrations for application routes."""

from flask import Flask

from .auth import blueprint as auth_blueprint
from .calculations import blueprint as calculations_blueprint
from .config import blueprint as config_blueprint
from .localization import blueprint as translations_blueprint
from .salary import blueprint as salary_blueprint
from .todos import blueprint as todos_blueprint


def register_routes(app: Flask) -> None:
    """Register all Flask blueprints with the provided application."""

    app.register_blueprint(auth_blueprint)
    app.register_blueprint(calculations_blueprint)
    app.register_blueprint(config_blueprint)
    app.register_blueprint(salary_blueprint)
    app.register_blueprint(todos_blueprint)
    app.register_blueprint(translations_blueprint)
