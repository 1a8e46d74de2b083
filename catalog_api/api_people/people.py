import logging

from flask import Blueprint, jsonify, request
from pymongo import ReturnDocument

from catalog_api.api_people.people_functions import (
    SORT_OPTIONS,
    build_people_payload,
    build_people_query,
    fetch_person_detail,
    invalidate_people_cache,
    invalidate_people_dependents,
    parse_person_payload,
)
from catalog_api.database import PEOPLE, get_db
from catalog_api.security import admin_required
from catalog_api.shared_functions import (
    MAX_SEARCH_PAGE_SIZE,
    parse_object_id,
    parse_pagination,
    read_json_object,
    serialize_document,
    utc_now,
)

logger = logging.getLogger(__name__)

bp = Blueprint("people", __name__)


@bp.route("/addPerson", methods=["POST"])
@admin_required
def add_person():
    """
    Handle POST requests that create an actor, director or crew member.

    Returns:
        Response: Flask response with the created person and status code.
    ---
    tags:
      - People
    security:
      - bearerAuth: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [name, type]
          properties:
            name:
              type: string
            type:
              type: string
              enum: [actor, director, crew]
            biography:
              type: string
            birthDate:
              type: string
              format: date
            awards:
              type: array
              items:
                type: object
            socialLinks:
              type: object
    responses:
      201:
        description: Person created
      400:
        description: Missing or invalid field
      403:
        description: Caller is not an admin
    """
    payload = read_json_object()
    person = parse_person_payload(payload)
    person.setdefault("awards", [])
    person.setdefault("photos", [])
    person.setdefault("filmography", [])
    person.setdefault("socialLinks", {})
    person["createdAt"] = utc_now()

    result = get_db()[PEOPLE].insert_one(person)
    person["_id"] = result.inserted_id
    return jsonify({"message": f"{person['type'].capitalize()} created successfully", "person": serialize_document(person)}), 201


@bp.route("/people", methods=["GET"])
def get_people():
    """
    Handle GET requests for people listings.

    Returns:
        Response: Flask response with people data and metadata.
    ---
    tags:
      - People
    parameters:
      - {in: query, name: q, type: string, description: Name search}
      - {in: query, name: type, type: string, enum: [all, actor, director, crew]}
      - {in: query, name: sort, type: string, enum: [name, name-desc, newest]}
      - {in: query, name: page, type: integer, default: 1}
      - {in: query, name: limit, type: integer, default: 10, maximum: 100}
    responses:
      200:
        description: People and pagination block
      400:
        description: Invalid type
    """
    search = (request.args.get("q") or "").strip()
    person_type = (request.args.get("type") or "all").lower()
    sort_option = (request.args.get("sort") or "name").lower()
    if sort_option not in SORT_OPTIONS:
        sort_option = "name"
    page, limit, skip = parse_pagination(request.args, max_limit=MAX_SEARCH_PAGE_SIZE)

    query = build_people_query(search, person_type)
    people = get_db()[PEOPLE]
    documents = list(people.find(query).sort(SORT_OPTIONS[sort_option]).skip(skip).limit(limit))
    total = people.count_documents(query)

    return jsonify(build_people_payload(documents, total, page, limit, sort_option, person_type, search))


@bp.route("/people/<person_id>", methods=["GET"])
def get_person(person_id: str):
    """
    Handle GET requests for a person by identifier.

    Args:
        person_id (str): Identifier from the path segment.

    Returns:
        Response: Flask response with person data or error payload.
    ---
    tags:
      - People
    parameters:
      - {in: path, name: person_id, type: string, required: true}
    responses:
      200:
        description: Person document
      404:
        description: Person not found
    """
    document = fetch_person_detail(get_db(), parse_object_id(person_id, "person ID"))
    if not document:
        return jsonify({"error": "Person not found"}), 404
    return jsonify({"success": True, "person": document})


@bp.route("/people/<person_id>", methods=["PUT"])
@admin_required
def update_person(person_id: str):
    """
    Handle PUT requests for a person.

    Args:
        person_id (str): Identifier from the path segment.

    Returns:
        Response: Flask response with the updated person or error payload.
    ---
    tags:
      - People
    security:
      - bearerAuth: []
    parameters:
      - {in: path, name: person_id, type: string, required: true}
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            name:
              type: string
            type:
              type: string
              enum: [actor, director, crew]
            biography:
              type: string
    responses:
      200:
        description: Updated person
      400:
        description: No valid fields to update
      403:
        description: Caller is not an admin
      404:
        description: Person not found
    """
    oid = parse_object_id(person_id, "person ID")
    updates = parse_person_payload(read_json_object(), partial=True)
    if not updates:
        return jsonify({"error": "No valid fields to update"}), 400

    updated = get_db()[PEOPLE].find_one_and_update({"_id": oid}, {"$set": updates}, return_document=ReturnDocument.AFTER)
    if not updated:
        return jsonify({"error": "Person not found"}), 404

    invalidate_people_cache([oid])
    if "name" in updates:
        invalidate_people_dependents()
    return jsonify({"message": "Person updated successfully", "person": serialize_document(updated)})


@bp.route("/people/<person_id>", methods=["DELETE"])
@admin_required
def delete_person(person_id: str):
    """
    Handle DELETE requests for a person. Movies keep their references.

    Args:
        person_id (str): Identifier from the path segment.

    Returns:
        Response: Flask response with delete status payload.
    ---
    tags:
      - People
    security:
      - bearerAuth: []
    parameters:
      - {in: path, name: person_id, type: string, required: true}
    responses:
      200:
        description: Deleted person
      403:
        description: Caller is not an admin
      404:
        description: Person not found
    """
    oid = parse_object_id(person_id, "person ID")
    deleted = get_db()[PEOPLE].find_one_and_delete({"_id": oid})
    if not deleted:
        return jsonify({"error": "Person not found"}), 404

    invalidate_people_cache([oid])
    invalidate_people_dependents()
    logger.info("Person %s deleted", oid)
    return jsonify({"message": "Person deleted successfully", "person": serialize_document(deleted)})
