from flask import Blueprint, current_app, jsonify
from pymongo import ReturnDocument

from catalog_api.api_notifications.notification_service import check_upcoming_movies
from catalog_api.database import USERS, get_db
from catalog_api.errors import ApiError
from catalog_api.security import admin_required, current_user_id, login_required
from catalog_api.shared_functions import read_json_object

bp = Blueprint("notifications", __name__)

SETTINGS_FIELDS = {"remainder": "remindersForNewReleases", "notifications": "sendNotifications"}


@bp.route("/check-upcoming", methods=["POST"])
@admin_required
def trigger_upcoming_check():
    """
    Handle POST requests that run the upcoming-release notification batch now.

    Returns:
        Response: Flask response with the batch summary.
    ---
    tags:
      - Notifications
    security:
      - bearerAuth: []
    responses:
      200:
        description: Batch summary with movie, user, sent and failed counts
      401:
        description: Missing or invalid token
      403:
        description: Caller is not an admin
    """
    summary = check_upcoming_movies(get_db(), current_app.extensions["email_sender"])
    return jsonify({"message": "Notification check triggered successfully", "summary": summary})


@bp.route("/settings", methods=["PATCH"])
@login_required
def update_notification_settings():
    """
    Handle PATCH requests that toggle the caller's reminder and notification flags.

    Returns:
        Response: Flask response with both flags after the change.
    ---
    tags:
      - Notifications
    security:
      - bearerAuth: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            remainder:
              type: boolean
            notifications:
              type: boolean
    responses:
      200:
        description: Updated notification settings
      400:
        description: No flag given or a flag is not a boolean
      401:
        description: Missing or invalid token
    """
    payload = read_json_object()
    if all(payload.get(key) is None for key in SETTINGS_FIELDS):
        return jsonify({"error": 'At least one of "remainder" or "notifications" must be provided.'}), 400

    updates = {}
    for key, field in SETTINGS_FIELDS.items():
        if payload.get(key) is None:
            continue
        if not isinstance(payload[key], bool):
            return jsonify({"error": f'"{key}" must be a boolean value (true/false).'}), 400
        updates[field] = payload[key]

    user = get_db()[USERS].find_one_and_update(
        {"_id": current_user_id()},
        {"$set": updates},
        return_document=ReturnDocument.AFTER,
    )
    if not user:
        raise ApiError("User not found", 404)
    return jsonify({
        "message": "Notification settings updated",
        "settings": {field: user.get(field) for field in SETTINGS_FIELDS.values()},
    })
