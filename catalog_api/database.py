import logging

from flask import current_app
from pymongo import ASCENDING, MongoClient
import redis

logger = logging.getLogger(__name__)

USERS = "users"
MOVIES = "movies"
PEOPLE = "people"
REVIEWS = "reviews"
DISCUSSIONS = "discussions"
CUSTOM_LISTS = "customlists"
NEWS = "news"


def create_mongo_client(config: dict):
    """
    Build the MongoDB client from configuration.

    Args:
        config (dict): Application configuration mapping.

    Returns:
        MongoClient: Client bound to the configured URI.
    """
    return MongoClient(config["MONGO_URI"])


def create_redis_client(config: dict):
    return redis.Redis(
        host=config["REDIS_HOST"],
        port=config["REDIS_PORT"],
        db=config["REDIS_DB"],
    )


def ensure_indexes(db):
    """
    Create the unique indexes the application relies on.

    Args:
        db (Database): Target database.
    """
    db[USERS].create_index([("email", ASCENDING)], unique=True)
    db[USERS].create_index([("username", ASCENDING)], unique=True)
    db[MOVIES].create_index([("title", ASCENDING)], unique=True)
    db[MOVIES].create_index([("releaseDate", ASCENDING)])
    db[MOVIES].create_index([("averageRating", ASCENDING)])
    db[PEOPLE].create_index([("name", ASCENDING)])
    db[REVIEWS].create_index([("user", ASCENDING), ("movie", ASCENDING)], unique=True)
    db[CUSTOM_LISTS].create_index([("user", ASCENDING), ("name", ASCENDING)], unique=True)
    db[NEWS].create_index([("category", ASCENDING)])


def get_db():
    """Return the database handle stored on the current application."""
    return current_app.extensions["mongo_db"]


def get_cache():
    """Return the Redis client stored on the current application."""
    return current_app.extensions["redis"]
