import logging

from flask import Blueprint, jsonify
from pymongo import ReturnDocument

from catalog_api.database import PEOPLE, USERS, get_db
from catalog_api.errors import ApiError
from catalog_api.security import load_current_user, login_required
from catalog_api.shared_functions import (
    ensure_ids_exist,
    is_string_list,
    parse_object_id_list,
    read_json_object,
    serialize_document,
)

logger = logging.getLogger(__name__)

bp = Blueprint("profile", __name__)

PROFILE_TEXT_FIELDS = ["nickName", "bio"]
NOTIFICATION_FLAGS = ["remindersForNewReleases", "sendNotifications"]


def build_profile_update(db, payload: dict):
    """
    Validate a profile change request.

    Args:
        db (Database): Database handle.
        payload (dict): JSON body.

    Returns:
        dict: ``$set`` document, empty when nothing manageable was sent.
    """
    updates = {}
    for field in PROFILE_TEXT_FIELDS:
        if payload.get(field) is None:
            continue
        if not isinstance(payload[field], str):
            raise ApiError(f"{field} must be a string")
        updates[f"profile.{field}"] = payload[field]

    if payload.get("favoriteGenres") is not None:
        if not is_string_list(payload["favoriteGenres"]):
            raise ApiError("favoriteGenres must be a list of strings")
        updates["profile.favoriteGenres"] = [genre.strip() for genre in payload["favoriteGenres"] if genre.strip()]

    if payload.get("favoriteActors") is not None:
        actor_ids = parse_object_id_list(payload["favoriteActors"], "favorite actor")
        ensure_ids_exist(db[PEOPLE], actor_ids, "favorite actor")
        updates["profile.favoriteActors"] = actor_ids

    for flag in NOTIFICATION_FLAGS:
        if payload.get(flag) is None:
            continue
        if not isinstance(payload[flag], bool):
            raise ApiError(f"{flag} must be a boolean")
        updates[flag] = payload[flag]
    return updates


@bp.route("/", methods=["GET"])
@login_required
def get_profile():
    """
    Handle GET requests for the caller's profile.

    Returns:
        Response: Flask response with the user document, password excluded.
    ---
    tags:
      - Profile
    security:
      - bearerAuth: []
    responses:
      200:
        description: Caller's user document without the password
      401:
        description: Missing or invalid token
      404:
        description: User not found
    """
    user = load_current_user(get_db(), {"password": 0})
    return jsonify({"message": "Profile fetched successfully", "user": serialize_document(user)})


@bp.route("/manage", methods=["PUT"])
@login_required
def update_profile():
    """
    Handle PUT requests that change profile fields and notification flags.

    Returns:
        Response: Flask response with the updated user document.
    ---
    tags:
      - Profile
    security:
      - bearerAuth: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            nickName:
              type: string
            bio:
              type: string
            favoriteGenres:
              type: array
              items:
                type: string
            favoriteActors:
              type: array
              items:
                type: string
            remindersForNewReleases:
              type: boolean
            sendNotifications:
              type: boolean
    responses:
      200:
        description: Updated profile
      400:
        description: Nothing to update, or an invalid or unknown value
      401:
        description: Missing or invalid token
    """
    db = get_db()
    user = load_current_user(db, {"_id": 1})
    updates = build_profile_update(db, read_json_object())
    if not updates:
        return jsonify({"error": "Nothing to update. Only nickName, bio, favoriteGenres, favoriteActors, remindersForNewReleases and sendNotifications can be managed"}), 400

    updated = db[USERS].find_one_and_update({"_id": user["_id"]}, {"$set": updates}, return_document=ReturnDocument.AFTER)
    return jsonify({"message": "Profile updated successfully", "user": serialize_document(updated)})
