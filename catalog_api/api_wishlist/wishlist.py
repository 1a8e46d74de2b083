import logging

from flask import Blueprint, jsonify, request

from catalog_api.database import MOVIES, USERS, get_db
from catalog_api.security import current_user_id, load_current_user, login_required
from catalog_api.shared_functions import (
    build_pagination,
    ensure_ids_exist,
    parse_object_id,
    parse_pagination,
    read_json_object,
    serialize_document,
)

logger = logging.getLogger(__name__)

bp = Blueprint("wishlist", __name__)


def read_movie_id():
    payload = read_json_object()
    if not payload.get("movieId"):
        return None
    return parse_object_id(payload["movieId"], "movie ID")


@bp.route("/add", methods=["POST"])
@login_required
def add_to_wishlist():
    """
    Handle POST requests that append a movie to the caller's wishlist.

    Returns:
        Response: Flask response with the updated wishlist identifiers.
    ---
    tags:
      - Wishlist
    security:
      - bearerAuth: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [movieId]
          properties:
            movieId:
              type: string
    responses:
      200:
        description: Updated wishlist identifiers
      400:
        description: Missing movie ID or movie already in wishlist
      404:
        description: Movie does not exist
    """
    movie_id = read_movie_id()
    if movie_id is None:
        return jsonify({"error": "Movie ID is required"}), 400

    db = get_db()
    user = load_current_user(db, {"wishlist": 1})
    if movie_id in user.get("wishlist", []):
        return jsonify({"error": "Movie already in wishlist"}), 400
    ensure_ids_exist(db[MOVIES], [movie_id], "movie", status_code=404)

    db[USERS].update_one({"_id": user["_id"]}, {"$push": {"wishlist": movie_id}})
    wishlist = user.get("wishlist", []) + [movie_id]
    return jsonify({"message": "Movie added to wishlist successfully", "wishlist": [str(oid) for oid in wishlist]})


@bp.route("/", methods=["GET"])
@login_required
def get_wishlist():
    """
    Handle GET requests for the caller's wishlist, in the order movies were added.

    Returns:
        Response: Flask response with movie documents and pagination block.
    ---
    tags:
      - Wishlist
    security:
      - bearerAuth: []
    parameters:
      - {in: query, name: page, type: integer, default: 1}
      - {in: query, name: limit, type: integer, default: 10}
    responses:
      200:
        description: Wishlist movies in insertion order and pagination block
    """
    page, limit, skip = parse_pagination(request.args)
    db = get_db()
    wishlist = load_current_user(db, {"wishlist": 1}).get("wishlist", [])

    window = wishlist[skip:skip + limit]
    movies = {movie["_id"]: movie for movie in db[MOVIES].find({"_id": {"$in": window}})}
    data = [serialize_document(movies[oid]) for oid in window if oid in movies]

    return jsonify({"success": True, "wishlist": data, "pagination": build_pagination(len(wishlist), page, limit)})


@bp.route("/remove", methods=["DELETE"])
@login_required
def remove_from_wishlist():
    """
    Handle DELETE requests that drop a movie from the caller's wishlist.

    Returns:
        Response: Flask response with the remaining wishlist identifiers.
    ---
    tags:
      - Wishlist
    security:
      - bearerAuth: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [movieId]
          properties:
            movieId:
              type: string
    responses:
      200:
        description: Updated wishlist identifiers
      400:
        description: Movie not found in wishlist
    """
    movie_id = read_movie_id()
    if movie_id is None:
        return jsonify({"error": "Movie ID is required"}), 400

    db = get_db()
    user = load_current_user(db, {"wishlist": 1})
    wishlist = user.get("wishlist", [])
    if movie_id not in wishlist:
        return jsonify({"error": "Movie not found in wishlist"}), 400

    db[USERS].update_one({"_id": current_user_id()}, {"$pull": {"wishlist": movie_id}})
    remaining = [oid for oid in wishlist if oid != movie_id]
    return jsonify({"message": "Movie removed from wishlist successfully", "wishlist": [str(oid) for oid in remaining]})
