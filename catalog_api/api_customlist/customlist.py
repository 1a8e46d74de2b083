import logging

from flask import Blueprint, jsonify, request
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from catalog_api.api_customlist.customlist_functions import (
    load_owned_list,
    parse_list_text,
    populate_list_movies,
)
from catalog_api.database import CUSTOM_LISTS, MOVIES, USERS, get_db
from catalog_api.security import current_user_id, login_required
from catalog_api.shared_functions import (
    ensure_ids_exist,
    paginate_query,
    parse_object_id,
    parse_pagination,
    read_json_object,
    serialize_document,
    utc_now,
)

logger = logging.getLogger(__name__)

bp = Blueprint("customlist", __name__)


def list_window(query: dict):
    page, limit, _ = parse_pagination(request.args)
    db = get_db()
    documents, pagination = paginate_query(db[CUSTOM_LISTS], query, page, limit, sort=[("_id", 1)])
    return jsonify({"success": True, "customLists": populate_list_movies(db, documents), "pagination": pagination})


@bp.route("/all", methods=["GET"])
def get_all_custom_lists():
    """
    Handle GET requests for every custom list.

    Returns:
        Response: Flask response with lists, their movies and pagination block.
    ---
    tags:
      - Custom lists
    parameters:
      - {in: query, name: page, type: integer, default: 1}
      - {in: query, name: limit, type: integer, default: 10}
    responses:
      200:
        description: Every custom list with populated movies and pagination block
    """
    return list_window({})


@bp.route("/", methods=["GET"])
@login_required
def get_my_custom_lists():
    """
    Handle GET requests for the caller's custom lists.

    Returns:
        Response: Flask response with lists, their movies and pagination block.
    ---
    tags:
      - Custom lists
    security:
      - bearerAuth: []
    parameters:
      - {in: query, name: page, type: integer, default: 1}
      - {in: query, name: limit, type: integer, default: 10}
    responses:
      200:
        description: Caller's custom lists with populated movies and pagination block
      401:
        description: Missing or invalid token
    """
    return list_window({"user": current_user_id()})


@bp.route("/create-new", methods=["POST"])
@login_required
def create_custom_list():
    """
    Handle POST requests that create a named list for the caller.

    Returns:
        Response: Flask response with the created list and status code.
    ---
    tags:
      - Custom lists
    security:
      - bearerAuth: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [name]
          properties:
            name:
              type: string
            description:
              type: string
    responses:
      201:
        description: Custom list created
      400:
        description: Name missing or already used by the caller
    """
    payload = read_json_object()
    name = parse_list_text(payload, "name")
    if not name:
        return jsonify({"error": "List name is required"}), 400

    db = get_db()
    user_id = current_user_id()
    if db[CUSTOM_LISTS].find_one({"user": user_id, "name": name}, {"_id": 1}):
        return jsonify({"error": "A custom list with this name already exists"}), 400

    custom_list = {
        "user": user_id,
        "name": name,
        "description": parse_list_text(payload, "description") or "",
        "movies": [],
        "createdAt": utc_now(),
    }
    try:
        custom_list["_id"] = db[CUSTOM_LISTS].insert_one(custom_list).inserted_id
    except DuplicateKeyError:
        return jsonify({"error": "A custom list with this name already exists"}), 400

    db[USERS].update_one({"_id": user_id}, {"$push": {"customLists": custom_list["_id"]}})
    return jsonify({"message": "Custom list created", "customList": serialize_document(custom_list)}), 201


@bp.route("/<list_id>/update", methods=["PUT"])
@login_required
def update_custom_list(list_id: str):
    """
    Handle PUT requests that rename or describe a list.

    Args:
        list_id (str): Identifier from the path segment.

    Returns:
        Response: Flask response with the updated list.
    ---
    tags:
      - Custom lists
    security:
      - bearerAuth: []
    parameters:
      - {in: path, name: list_id, type: string, required: true}
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            name:
              type: string
            description:
              type: string
    responses:
      200:
        description: Updated custom list
      400:
        description: Nothing to update or name already used
      403:
        description: Caller does not own the list
      404:
        description: Custom list not found
    """
    payload = read_json_object()
    updates = {}
    name = parse_list_text(payload, "name")
    description = parse_list_text(payload, "description")
    if name:
        updates["name"] = name
    if description:
        updates["description"] = description
    if not updates:
        return jsonify({"error": "At least name or description is required to update"}), 400

    db = get_db()
    custom_list = load_owned_list(db, list_id, "update this custom list")
    if name and name != custom_list["name"] and db[CUSTOM_LISTS].find_one({"user": custom_list["user"], "name": name}, {"_id": 1}):
        return jsonify({"error": "A custom list with this name already exists"}), 400

    updated = db[CUSTOM_LISTS].find_one_and_update({"_id": custom_list["_id"]}, {"$set": updates}, return_document=ReturnDocument.AFTER)
    return jsonify({"message": "Custom list updated successfully", "customList": serialize_document(updated)})


@bp.route("/delete/<list_id>", methods=["DELETE"])
@login_required
def delete_custom_list(list_id: str):
    """
    Handle DELETE requests for one of the caller's custom lists.

    ---
    tags:
      - Custom lists
    security:
      - bearerAuth: []
    parameters:
      - {in: path, name: list_id, type: string, required: true}
    responses:
      200:
        description: Custom list deleted
      403:
        description: Caller does not own the list
      404:
        description: Custom list not found
    """
    db = get_db()
    custom_list = load_owned_list(db, list_id, "delete this custom list")
    db[CUSTOM_LISTS].delete_one({"_id": custom_list["_id"]})
    db[USERS].update_one({"_id": custom_list["user"]}, {"$pull": {"customLists": custom_list["_id"]}})
    return jsonify({"message": "Custom list deleted successfully"})


@bp.route("/<list_id>/add-movie", methods=["POST"])
@login_required
def add_movie_to_list(list_id: str):
    """
    Handle POST requests that append a movie to one of the caller's lists.

    Args:
        list_id (str): Identifier from the path segment.

    Returns:
        Response: Flask response with the updated list.
    ---
    tags:
      - Custom lists
    security:
      - bearerAuth: []
    parameters:
      - {in: path, name: list_id, type: string, required: true}
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
        description: Updated custom list
      400:
        description: Missing movie ID or movie already in the list
      403:
        description: Caller does not own the list
      404:
        description: Movie or custom list not found
    """
    payload = read_json_object()
    if not payload.get("movieId"):
        return jsonify({"error": "Movie ID is required"}), 400
    movie_id = parse_object_id(payload["movieId"], "movie ID")

    db = get_db()
    ensure_ids_exist(db[MOVIES], [movie_id], "movie", status_code=404)
    custom_list = load_owned_list(db, list_id, "add movie to this custom list")
    if movie_id in custom_list.get("movies", []):
        return jsonify({"error": "Movie already in the list"}), 400

    updated = db[CUSTOM_LISTS].find_one_and_update({"_id": custom_list["_id"]}, {"$push": {"movies": movie_id}}, return_document=ReturnDocument.AFTER)
    return jsonify({"message": "Movie added to custom list successfully", "customList": serialize_document(updated)})


@bp.route("/<list_id>/remove-movie", methods=["DELETE"])
@login_required
def remove_movie_from_list(list_id: str):
    """
    Handle DELETE requests that drop a movie from one of the caller's lists.

    Args:
        list_id (str): Identifier from the path segment.

    Returns:
        Response: Flask response with the updated list.
    ---
    tags:
      - Custom lists
    security:
      - bearerAuth: []
    parameters:
      - {in: path, name: list_id, type: string, required: true}
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
        description: Updated custom list
      403:
        description: Caller does not own the list
      404:
        description: Movie not in the list or custom list not found
    """
    payload = read_json_object()
    if not payload.get("movieId"):
        return jsonify({"error": "Movie ID is required"}), 400
    movie_id = parse_object_id(payload["movieId"], "movie ID")

    db = get_db()
    custom_list = load_owned_list(db, list_id, "remove movie from this custom list")
    if movie_id not in custom_list.get("movies", []):
        return jsonify({"error": "Movie not found in the custom list"}), 404

    updated = db[CUSTOM_LISTS].find_one_and_update({"_id": custom_list["_id"]}, {"$pull": {"movies": movie_id}}, return_document=ReturnDocument.AFTER)
    return jsonify({"message": "Movie removed from custom list", "customList": serialize_document(updated)})
