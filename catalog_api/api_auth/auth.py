import logging

from flask import Blueprint, jsonify
from pymongo.errors import DuplicateKeyError

from catalog_api.api_auth.auth_functions import build_new_user, is_strong_password, is_valid_email, read_text
from catalog_api.database import USERS, get_db
from catalog_api.security import ROLES, hash_password, issue_token, verify_password
from catalog_api.shared_functions import read_json_object

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__)


@bp.route("/register", methods=["POST"])
def register_user():
    """
    Register a new account.

    Expects a JSON body with username, email, password and role (``user`` or ``admin``).
    The password must be at least 8 letters or digits with at least one of each.
    ---
    tags:
      - Auth
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [username, email, password, role]
          properties:
            username:
              type: string
            email:
              type: string
            password:
              type: string
            role:
              type: string
              enum: [user, admin]
    responses:
      201:
        description: User registered
      400:
        description: Missing or invalid field, or the user already exists
    """
    payload = read_json_object()
    username = read_text(payload, "username")
    email = read_text(payload, "email")
    password = payload.get("password") or ""
    role = payload.get("role")

    if not username or not email or not password:
        return jsonify({"error": "Username, email, and password all are required"}), 400
    if not is_valid_email(email):
        return jsonify({"error": "Invalid email format"}), 400
    if not isinstance(password, str) or not is_strong_password(password):
        return jsonify({"error": "Password must be at least 8 characters long, contain at least one letter and one number"}), 400
    if role not in ROLES:
        return jsonify({"error": 'Role must be either "user" or "admin"'}), 400

    users = get_db()[USERS]
    if users.find_one({"$or": [{"email": email}, {"username": username}]}):
        return jsonify({"error": "User already exists"}), 400

    try:
        users.insert_one(build_new_user(username, email, hash_password(password), role))
    except DuplicateKeyError:
        return jsonify({"error": "User already exists"}), 400

    logger.info("Registered user %s with role %s", username, role)
    return jsonify({"message": "User registered successfully"}), 201


@bp.route("/login", methods=["POST"])
def login_user():
    """
    Exchange email and password for a bearer token valid for one hour.
    ---
    tags:
      - Auth
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [email, password]
          properties:
            email:
              type: string
            password:
              type: string
    responses:
      200:
        description: Bearer token
        schema:
          type: object
          properties:
            token:
              type: string
      400:
        description: Invalid email or password
    """
    payload = read_json_object()
    email = read_text(payload, "email")
    password = payload.get("password") or ""

    if not email or not password:
        return jsonify({"error": "Email and password are required"}), 400
    if not isinstance(password, str):
        return jsonify({"error": "Invalid email or password"}), 400

    user = get_db()[USERS].find_one({"email": email})
    if not user or not verify_password(user.get("password"), password):
        return jsonify({"error": "Invalid email or password"}), 400

    return jsonify({"token": issue_token(user)})
