import logging

from bson import ObjectId
from flask import Blueprint, jsonify, request
from pymongo import ReturnDocument

from catalog_api.api_discussion.discussion_functions import (
    build_discussion_fields,
    find_comment,
    load_discussion,
    populate_discussions,
)
from catalog_api.database import DISCUSSIONS, get_db
from catalog_api.security import current_user_id, ensure_owner, login_required
from catalog_api.shared_functions import (
    paginate_query,
    parse_object_id,
    parse_pagination,
    read_json_object,
    serialize_document,
    utc_now,
)

logger = logging.getLogger(__name__)

bp = Blueprint("discussion", __name__)


@bp.route("/create-new", methods=["POST"])
@login_required
def create_discussion():
    """
    Handle POST requests that open a discussion.

    Returns:
        Response: Flask response with the created discussion and status code.
    ---
    tags:
      - Discussions
    security:
      - bearerAuth: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [title, content, category]
          properties:
            title:
              type: string
              minLength: 3
            content:
              type: string
              minLength: 10
            category:
              type: string
              enum: [General, Genres, Actors, Movies, Drama]
            relatedMovie:
              type: array
              items:
                type: string
    responses:
      201:
        description: Discussion created
      400:
        description: Invalid field or unknown related movie
    """
    db = get_db()
    discussion = build_discussion_fields(db, read_json_object())
    discussion["createdBy"] = current_user_id()
    discussion["comments"] = []
    discussion["createdAt"] = utc_now()

    discussion["_id"] = db[DISCUSSIONS].insert_one(discussion).inserted_id
    return jsonify({"success": True, "discussion": serialize_document(discussion)}), 201


@bp.route("/", methods=["GET"])
def get_discussions():
    """
    Handle GET requests for discussions in the order they were opened.

    Returns:
        Response: Flask response with discussions and pagination block.
    ---
    tags:
      - Discussions
    parameters:
      - {in: query, name: page, type: integer, default: 1}
      - {in: query, name: limit, type: integer, default: 10}
    responses:
      200:
        description: Discussions with creator usernames and pagination block
    """
    page, limit, _ = parse_pagination(request.args)
    db = get_db()
    discussions, pagination = paginate_query(db[DISCUSSIONS], {}, page, limit, sort=[("_id", 1)])
    return jsonify({"success": True, "discussions": populate_discussions(db, discussions), "pagination": pagination})


@bp.route("/<discussion_id>", methods=["GET"])
def get_discussion(discussion_id: str):
    """
    Handle GET requests for one discussion with its comments.

    ---
    tags:
      - Discussions
    parameters:
      - {in: path, name: discussion_id, type: string, required: true}
    responses:
      200:
        description: Discussion with creator, related movie titles and comment authors
      404:
        description: Discussion not found
    """
    db = get_db()
    discussion = load_discussion(db, discussion_id)
    return jsonify({"success": True, "discussion": populate_discussions(db, [discussion])[0]})


@bp.route("/<discussion_id>", methods=["PUT"])
@login_required
def update_discussion(discussion_id: str):
    """
    Handle PUT requests that edit a discussion opened by the caller.

    Args:
        discussion_id (str): Identifier from the path segment.

    Returns:
        Response: Flask response with the updated discussion.
    ---
    tags:
      - Discussions
    security:
      - bearerAuth: []
    parameters:
      - {in: path, name: discussion_id, type: string, required: true}
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            title:
              type: string
            content:
              type: string
            category:
              type: string
            relatedMovie:
              type: array
              items:
                type: string
    responses:
      200:
        description: Updated discussion
      400:
        description: Nothing to update or invalid field
      403:
        description: Caller did not open the discussion
      404:
        description: Discussion not found
    """
    db = get_db()
    discussion = load_discussion(db, discussion_id)
    ensure_owner(discussion["createdBy"], "You are not authorized to update this discussion")

    updates = build_discussion_fields(db, read_json_object(), partial=True)
    if not updates:
        return jsonify({"error": "No fields provided to update"}), 400

    updated = db[DISCUSSIONS].find_one_and_update({"_id": discussion["_id"]}, {"$set": updates}, return_document=ReturnDocument.AFTER)
    return jsonify({"success": True, "discussion": serialize_document(updated)})


@bp.route("/<discussion_id>", methods=["DELETE"])
@login_required
def delete_discussion(discussion_id: str):
    """
    Handle DELETE requests for a discussion, by its creator or an admin.

    ---
    tags:
      - Discussions
    security:
      - bearerAuth: []
    parameters:
      - {in: path, name: discussion_id, type: string, required: true}
    responses:
      200:
        description: Discussion deleted
      403:
        description: Caller is neither the creator nor an admin
      404:
        description: Discussion not found
    """
    db = get_db()
    discussion = load_discussion(db, discussion_id)
    ensure_owner(discussion["createdBy"], "You are not authorized to delete this discussion", allow_admin=True)
    db[DISCUSSIONS].delete_one({"_id": discussion["_id"]})
    return jsonify({"success": True, "message": "Discussion deleted successfully"})


@bp.route("/<discussion_id>/comments", methods=["POST"])
@login_required
def add_comment(discussion_id: str):
    """
    Handle POST requests that append a comment to a discussion.

    Args:
        discussion_id (str): Identifier from the path segment.

    Returns:
        Response: Flask response with the discussion including the new comment.
    ---
    tags:
      - Discussions
    security:
      - bearerAuth: []
    parameters:
      - {in: path, name: discussion_id, type: string, required: true}
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [content]
          properties:
            content:
              type: string
    responses:
      201:
        description: Comment added
      400:
        description: Comment content is empty
      404:
        description: Discussion not found
    """
    payload = read_json_object()
    content = payload.get("content")
    if not isinstance(content, str) or not content.strip():
        return jsonify({"error": "Comment content is required and cannot be empty."}), 400

    db = get_db()
    discussion = load_discussion(db, discussion_id)
    comment = {
        "_id": ObjectId(),
        "content": content.strip(),
        "createdBy": current_user_id(),
        "createdAt": utc_now(),
    }
    updated = db[DISCUSSIONS].find_one_and_update({"_id": discussion["_id"]}, {"$push": {"comments": comment}}, return_document=ReturnDocument.AFTER)
    return jsonify({"success": True, "comment": serialize_document(comment), "discussion": serialize_document(updated)}), 201


@bp.route("/<discussion_id>/comments/<comment_id>", methods=["DELETE"])
@login_required
def delete_comment(discussion_id: str, comment_id: str):
    """
    Handle DELETE requests for a comment, by its author or an admin.

    Args:
        discussion_id (str): Discussion identifier.
        comment_id (str): Comment identifier.

    Returns:
        Response: Flask response with the discussion after removal.
    ---
    tags:
      - Discussions
    security:
      - bearerAuth: []
    parameters:
      - {in: path, name: discussion_id, type: string, required: true}
      - {in: path, name: comment_id, type: string, required: true}
    responses:
      200:
        description: Comment removed
      403:
        description: Caller is neither the author nor an admin
      404:
        description: Discussion or comment not found
    """
    db = get_db()
    discussion = load_discussion(db, discussion_id)
    comment = find_comment(discussion, parse_object_id(comment_id, "comment ID"))
    if not comment:
        return jsonify({"error": "Comment not found."}), 404
    ensure_owner(comment["createdBy"], "You are not authorized to delete this comment", allow_admin=True)

    updated = db[DISCUSSIONS].find_one_and_update(
        {"_id": discussion["_id"]},
        {"$pull": {"comments": {"_id": comment["_id"]}}},
        return_document=ReturnDocument.AFTER,
    )
    return jsonify({"success": True, "discussion": serialize_document(updated)})
