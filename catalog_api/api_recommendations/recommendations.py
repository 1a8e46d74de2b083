from flask import Blueprint, jsonify, request

from catalog_api.api_recommendations.recommendations_functions import (
    build_similar_query,
    movie_block,
    rating_block,
)
from catalog_api.database import MOVIES, get_db
from catalog_api.security import load_current_user, login_required
from catalog_api.shared_functions import parse_object_id, parse_pagination

bp = Blueprint("recommendations", __name__)


@bp.route("/personalized", methods=["GET"])
@login_required
def get_personalized_recommendations():
    """
    Handle GET requests for movies in the caller's favorite genres, next to the trending block.

    Returns:
        Response: Flask response with ``personalized`` and ``trending`` blocks.
    ---
    tags:
      - Recommendations
    security:
      - bearerAuth: []
    parameters:
      - {in: query, name: page, type: integer, default: 1}
      - {in: query, name: limit, type: integer, default: 10}
    responses:
      200:
        description: Personalized and trending blocks, each with movies and pagination
      401:
        description: Missing or invalid token
    """
    page, limit, _ = parse_pagination(request.args)
    db = get_db()
    user = load_current_user(db, {"profile.favoriteGenres": 1})
    favorite_genres = (user.get("profile") or {}).get("favoriteGenres") or []

    return jsonify({
        "success": True,
        "recommendations": {
            "personalized": movie_block(db, {"genre": {"$in": favorite_genres}}, page, limit),
            "trending": rating_block(db, page, limit),
        },
    })


@bp.route("/similar-movies/<movie_id>", methods=["GET"])
def get_similar_movies(movie_id: str):
    """
    Handle GET requests for movies sharing a genre, director or actor with a movie.

    Args:
        movie_id (str): Identifier from the path segment.

    Returns:
        Response: Flask response with the similar movies block or 404.
    ---
    tags:
      - Recommendations
    parameters:
      - {in: path, name: movie_id, type: string, required: true}
      - {in: query, name: page, type: integer, default: 1}
      - {in: query, name: limit, type: integer, default: 10}
    responses:
      200:
        description: Movies sharing a genre, director or actor
      404:
        description: Movie not found
    """
    oid = parse_object_id(movie_id, "movie ID")
    page, limit, _ = parse_pagination(request.args)
    db = get_db()
    movie = db[MOVIES].find_one({"_id": oid}, {"genre": 1, "directors": 1, "actors": 1})
    if not movie:
        return jsonify({"error": "Movie not found"}), 404
    return jsonify({"success": True, "similarMovies": movie_block(db, build_similar_query(movie), page, limit)})


@bp.route("/trending-movies", methods=["GET"])
def get_trending_movies():
    """
    Handle GET requests for the trending and top rated blocks.

    Returns:
        Response: Flask response with ``trending`` and ``topRated`` blocks.
    ---
    tags:
      - Recommendations
    parameters:
      - {in: query, name: page, type: integer, default: 1}
      - {in: query, name: limit, type: integer, default: 10}
    responses:
      200:
        description: Trending and top rated blocks
    """
    page, limit, _ = parse_pagination(request.args)
    db = get_db()
    return jsonify({
        "success": True,
        "movies": {
            "trending": rating_block(db, page, limit),
            "topRated": rating_block(db, page, limit),
        },
    })
