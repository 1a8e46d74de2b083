import logging
from functools import wraps

from bson import ObjectId
from flask import current_app, g, request
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from werkzeug.security import check_password_hash, generate_password_hash

from catalog_api.database import USERS
from catalog_api.errors import ApiError

logger = logging.getLogger(__name__)

TOKEN_SALT = "catalog-api-auth"
ROLES = ("user", "admin")


def hash_password(password: str):
    return generate_password_hash(password)


def verify_password(password_hash: str | None, password: str):
    """
    Compare a plaintext password with its stored hash.

    Args:
        password_hash (str | None): Stored hash.
        password (str): Candidate password.

    Returns:
        bool: True when they match.
    """
    if not password_hash or not isinstance(password, str):
        return False
    return check_password_hash(password_hash, password)


def _serializer():
    return URLSafeTimedSerializer(current_app.config["JWT_SECRET"], salt=TOKEN_SALT)


def issue_token(user: dict):
    """
    Sign a token carrying the caller's identity claims.

    Args:
        user (dict): User document.

    Returns:
        str: Signed, timestamped token.
    """
    claims = {
        "userId": str(user["_id"]),
        "username": user.get("username"),
        "role": user.get("role", "user"),
    }
    return _serializer().dumps(claims)


def decode_token(token: str):
    """
    Verify a token's signature and age.

    Args:
        token (str): Token from the Authorization header.

    Returns:
        dict: Decoded claims.

    Raises:
        ApiError: 401 when the token is invalid or expired.
    """
    try:
        return _serializer().loads(token, max_age=current_app.config["TOKEN_MAX_AGE_SECONDS"])
    except SignatureExpired:
        logger.debug("Rejected expired token")
    except BadSignature:
        logger.debug("Rejected token with bad signature")
    raise ApiError("Invalid or expired token", 401)


def read_bearer_token():
    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        header = header[len("Bearer "):]
    return header.strip()


def login_required(view):
    """Reject the request with 401 unless it carries a valid bearer token."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        token = read_bearer_token()
        if not token:
            raise ApiError("Authorization token required", 401)
        g.current_user = decode_token(token)
        return view(*args, **kwargs)

    return wrapper


def roles_required(*roles: str):
    """
    Restrict a view to callers whose token carries one of the roles.

    Args:
        *roles (str): Accepted roles.

    Returns:
        Callable: Decorator applying authentication and the role check.
    """

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if g.current_user.get("role") not in roles:
                if roles == ("admin",):
                    raise ApiError("Access denied. You are not an admin.", 403)
                raise ApiError("Access denied.", 403)
            return view(*args, **kwargs)

        return login_required(wrapper)

    return decorator


admin_required = roles_required("admin")


def current_user_id():
    return ObjectId(g.current_user["userId"])


def is_admin():
    return g.current_user.get("role") == "admin"


def ensure_owner(owner_id, message: str, allow_admin: bool = False):
    """
    Reject callers that do not own the object.

    Args:
        owner_id (ObjectId | str): User id stored on the object.
        message (str): Error message for the 403 response.
        allow_admin (bool): Let admins through as well.

    Raises:
        ApiError: 403 when the caller is neither the owner nor an allowed admin.
    """
    if str(owner_id) == g.current_user.get("userId"):
        return
    if allow_admin and is_admin():
        return
    raise ApiError(message, 403)


def load_current_user(db, projection: dict | None = None):
    """
    Fetch the caller's user document.

    Args:
        db (Database): Database handle.
        projection (dict | None): Optional projection.

    Returns:
        dict: User document.

    Raises:
        ApiError: 404 when the account no longer exists.
    """
    user = db[USERS].find_one({"_id": current_user_id()}, projection)
    if not user:
        raise ApiError("User not found", 404)
    return user
