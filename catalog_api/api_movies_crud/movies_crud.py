import logging

from flask import Blueprint, jsonify, request
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from catalog_api.api_movies.movies_functions import invalidate_movie_cache, serialize_movies
from catalog_api.api_movies_crud.movies_crud_functions import (
    add_filmography,
    build_insights,
    build_movie_document,
    build_movie_update,
)
from catalog_api.api_news.news_functions import NEWS_DETAIL_CACHE_PREFIX
from catalog_api.api_people.people_functions import invalidate_people_cache
from catalog_api.database import MOVIES, get_db
from catalog_api.security import admin_required
from catalog_api.shared_functions import (
    invalidate_detail_cache,
    paginate_query,
    parse_object_id,
    parse_pagination,
    read_json_object,
    serialize_document,
    serialize_value,
)

logger = logging.getLogger(__name__)

bp = Blueprint("movies_crud", __name__)


@bp.route("/", methods=["GET"])
def list_movies():
    """
    Handle GET requests for every movie, in insertion order.

    Returns:
        Response: Flask response with the movie window and pagination block.
    ---
    tags:
      - Catalog administration
    parameters:
      - {in: query, name: page, type: integer, default: 1}
      - {in: query, name: limit, type: integer, default: 10}
    responses:
      200:
        description: Movies and pagination block
    """
    page, limit, _ = parse_pagination(request.args)
    db = get_db()
    movies, pagination = paginate_query(db[MOVIES], {}, page, limit, sort=[("_id", 1)])
    return jsonify({"success": True, "data": serialize_movies(db, movies), "pagination": pagination})


@bp.route("/add", methods=["POST"])
@admin_required
def add_movie():
    """
    Handle POST requests that insert a movie.

    Every actor and director must already exist; each of them gets a filmography entry.

    Returns:
        Response: Flask response with the created movie and status code.
    ---
    tags:
      - Catalog administration
    security:
      - bearerAuth: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [title, genre, directors, actors, releaseDate, runtime, ageRating, countryOfOrigin, language]
          properties:
            title:
              type: string
            genre:
              type: array
              items:
                type: string
            directors:
              type: array
              items:
                type: string
            actors:
              type: array
              items:
                type: string
            releaseDate:
              type: string
              format: date
            runtime:
              type: integer
            ageRating:
              type: string
            countryOfOrigin:
              type: string
            language:
              type: string
            synopsis:
              type: string
    responses:
      201:
        description: Movie created
      400:
        description: Missing or invalid field, unknown person, or duplicate title
      403:
        description: Caller is not an admin
    """
    payload = read_json_object()
    db = get_db()
    document = build_movie_document(db, payload)

    if db[MOVIES].find_one({"title": document["title"]}, {"_id": 1}):
        return jsonify({"error": "A movie with this title already exists"}), 400
    try:
        result = db[MOVIES].insert_one(document)
    except DuplicateKeyError:
        return jsonify({"error": "A movie with this title already exists"}), 400

    document["_id"] = result.inserted_id
    add_filmography(db, document["directors"], document, "Director")
    add_filmography(db, document["actors"], document, "Actor")
    invalidate_people_cache(document["directors"] + document["actors"])

    logger.info("Movie %s added", result.inserted_id)
    return jsonify({"message": "Movie added successfully", "movie": serialize_document(document)}), 201


@bp.route("/<movie_id>", methods=["PUT"])
@admin_required
def update_movie(movie_id: str):
    """
    Handle PUT requests for a movie.

    Args:
        movie_id (str): Identifier from the path segment.

    Returns:
        Response: Flask response with the updated movie or error payload.
    ---
    tags:
      - Catalog administration
    security:
      - bearerAuth: []
    parameters:
      - {in: path, name: movie_id, type: string, required: true}
      - in: body
        name: body
        required: true
        schema:
          type: object
          description: Array fields are appended, scalar fields are replaced.
    responses:
      200:
        description: Updated movie
      400:
        description: Invalid field or person already on the movie
      403:
        description: Caller is not an admin
      404:
        description: Movie not found
    """
    oid = parse_object_id(movie_id, "movie ID")
    payload = read_json_object()
    if not payload:
        return jsonify({"error": "No fields provided to update"}), 400

    db = get_db()
    movie = db[MOVIES].find_one({"_id": oid})
    if not movie:
        return jsonify({"error": "Movie not found"}), 404

    update, new_actors, new_directors = build_movie_update(db, movie, payload)
    try:
        updated = db[MOVIES].find_one_and_update({"_id": oid}, update, return_document=ReturnDocument.AFTER)
    except DuplicateKeyError:
        return jsonify({"error": "A movie with this title already exists"}), 400
    if not updated:
        return jsonify({"error": "Movie not found"}), 404

    add_filmography(db, new_directors, updated, "Director")
    add_filmography(db, new_actors, updated, "Actor")
    invalidate_people_cache(new_directors + new_actors)
    invalidate_movie_cache(oid)
    if "title" in payload:
        # News details embed related movie titles.
        invalidate_detail_cache(NEWS_DETAIL_CACHE_PREFIX)

    return jsonify({"message": "Movie updated successfully", "movie": serialize_document(updated)})


@bp.route("/<movie_id>", methods=["DELETE"])
@admin_required
def delete_movie(movie_id: str):
    """
    Handle DELETE requests for a movie. Reviews and list entries are left in place.

    Args:
        movie_id (str): Identifier from the path segment.

    Returns:
        Response: Flask response with the deleted movie or error payload.
    ---
    tags:
      - Catalog administration
    security:
      - bearerAuth: []
    parameters:
      - {in: path, name: movie_id, type: string, required: true}
    responses:
      200:
        description: Deleted movie
      403:
        description: Caller is not an admin
      404:
        description: Movie not found
    """
    oid = parse_object_id(movie_id, "movie ID")
    deleted = get_db()[MOVIES].find_one_and_delete({"_id": oid})
    if not deleted:
        return jsonify({"error": "Movie not found"}), 404

    invalidate_movie_cache(oid)
    invalidate_detail_cache(NEWS_DETAIL_CACHE_PREFIX)
    logger.info("Movie %s deleted", oid)
    return jsonify({"message": "Movie deleted successfully", "movie": serialize_document(deleted)})


@bp.route("/admin/insights", methods=["GET"])
@admin_required
def get_admin_insights():
    """
    Handle GET requests for catalog and community insights.

    Returns:
        Response: Flask response with genre trends, discussion trends and daily engagement.
    ---
    tags:
      - Catalog administration
    security:
      - bearerAuth: []
    parameters:
      - {in: query, name: genrePage, type: integer, default: 1}
      - {in: query, name: genreLimit, type: integer, default: 5}
      - {in: query, name: actorPage, type: integer, default: 1}
      - {in: query, name: actorLimit, type: integer, default: 5}
    responses:
      200:
        description: Genre trends, actor trends and daily engagement
      403:
        description: Caller is not an admin
    """
    insights = build_insights(get_db(), request.args)
    return jsonify({"success": True, **serialize_value(insights)})
