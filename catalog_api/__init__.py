import logging

from flasgger import Swagger
from flask import Flask
from flask_cors import CORS

from catalog_api.api_auth.auth import bp as auth_bp
from catalog_api.api_customlist.customlist import bp as customlist_bp
from catalog_api.api_discussion.discussion import bp as discussion_bp
from catalog_api.api_movies.movies import bp as movies_bp
from catalog_api.api_movies_crud.movies_crud import bp as movies_crud_bp
from catalog_api.api_news.news import bp as news_bp
from catalog_api.api_notifications.email_service import create_email_sender
from catalog_api.api_notifications.notifications import bp as notifications_bp
from catalog_api.api_people.people import bp as people_bp
from catalog_api.api_profile.profile import bp as profile_bp
from catalog_api.api_recommendations.recommendations import bp as recommendations_bp
from catalog_api.api_reviews.reviews import bp as reviews_bp
from catalog_api.api_wishlist.wishlist import bp as wishlist_bp
from catalog_api.config import Config, configure_logging
from catalog_api.database import create_mongo_client, create_redis_client, ensure_indexes
from catalog_api.errors import register_error_handlers

logger = logging.getLogger(__name__)

BLUEPRINTS = [
    (auth_bp, "/api/auth"),
    (movies_bp, "/api/movies"),
    (movies_crud_bp, "/api/moviesCRUD"),
    (people_bp, "/api/moviesCRUD"),
    (reviews_bp, "/api/reviews"),
    (wishlist_bp, "/api/wishlist"),
    (customlist_bp, "/api/customlist"),
    (profile_bp, "/api/profile"),
    (notifications_bp, "/api/notifications"),
    (news_bp, "/api/news"),
    (discussion_bp, "/api/discussion"),
    (recommendations_bp, "/api/recommendations"),
]

SWAGGER_TEMPLATE = {
    "info": {
        "title": "Movie Catalog API",
        "description": "Movies, people, reviews, lists, news, discussions and recommendations.",
        "version": "1.0.0",
    },
    "securityDefinitions": {
        "bearerAuth": {"type": "apiKey", "name": "Authorization", "in": "header"},
    },
}


def build_swagger_config():
    swagger_config = Swagger.DEFAULT_CONFIG.copy()
    swagger_config["specs_route"] = "/api-docs/"
    return swagger_config


def create_app(config_overrides: dict | None = None, mongo_client=None, redis_client=None, email_sender=None):
    """
    Build the Flask application.

    Args:
        config_overrides (dict | None): Values replacing the environment configuration.
        mongo_client (MongoClient | None): Client to use instead of one built from MONGO_URI.
        redis_client (Redis | None): Cache client to use instead of one built from REDIS_*.
        email_sender (SendGridEmailSender | None): Sender used by the notification batch.

    Returns:
        Flask: Configured application.
    """
    app = Flask(__name__)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    configure_logging(app.config["LOG_LEVEL"])
    if not app.config.get("JWT_SECRET"):
        if not app.config.get("TESTING"):
            raise RuntimeError("JWT_SECRET must be set")
        app.config["JWT_SECRET"] = "testing-secret"

    app.json.sort_keys = False
    app.url_map.strict_slashes = False
    CORS(app, origins=app.config["CORS_ORIGINS"])

    mongo_client = mongo_client or create_mongo_client(app.config)
    db = mongo_client[app.config["MONGO_DB_NAME"]]
    ensure_indexes(db)
    app.extensions["mongo_client"] = mongo_client
    app.extensions["mongo_db"] = db
    app.extensions["redis"] = redis_client or create_redis_client(app.config)
    app.extensions["email_sender"] = email_sender or create_email_sender(app.config)

    register_error_handlers(app)
    for blueprint, prefix in BLUEPRINTS:
        app.register_blueprint(blueprint, url_prefix=prefix)

    if app.config["SWAGGER_ENABLED"]:
        Swagger(app, config=build_swagger_config(), template=SWAGGER_TEMPLATE)

    logger.info("Movie catalog API ready on database %s", app.config["MONGO_DB_NAME"])
    return app
