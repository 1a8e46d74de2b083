import calendar
import json
import logging
import re
from datetime import date, datetime, timezone
from typing import Any

from bson import ObjectId
from flask import current_app, request
from pymongo.collection import Collection
import redis

from catalog_api.database import get_cache
from catalog_api.errors import ApiError

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_SEARCH_PAGE_SIZE = 100


def utc_now():
    """
    Return the current UTC time as a naive datetime, the way MongoDB stores it.

    Returns:
        datetime: Current time without tzinfo and microseconds truncated to milliseconds.
    """
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def add_months(moment: datetime, months: int):
    """
    Shift a datetime by whole calendar months, clamping the day to the target month.

    Args:
        moment (datetime): Starting point.
        months (int): Number of months to add.

    Returns:
        datetime: Shifted datetime.
    """
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def serialize_value(value: Any):
    """
    Convert BSON values nested anywhere in a value into JSON-friendly ones.

    Args:
        value (Any): Document, list or scalar.

    Returns:
        Any: Copy with ObjectIds as strings and datetimes in ISO 8601.
    """
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: serialize_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize_value(item) for item in value]
    return value


def serialize_document(document: dict | None, hidden: tuple = ("password",)):
    """
    Serialize a MongoDB document to a JSON-friendly dictionary.

    Args:
        document (dict | None): MongoDB document.
        hidden (tuple): Top-level fields that never leave the server.

    Returns:
        dict: Safe copy with string identifiers.
    """
    if not document:
        return {}
    payload = {key: value for key, value in document.items() if key not in hidden}
    return serialize_value(payload)


def build_cache_key(prefix: str, *parts: Any):
    """
    Build a Redis cache key with a prefix and optional segments.

    Args:
        prefix (str): Root part of the key.
        *parts: Additional segments.

    Returns:
        str: Colon-separated cache key.
    """
    normalized = [prefix]
    for part in parts:
        normalized.append(str(part) if part is not None else "")
    return ":".join(normalized)


def cache_get(key: str):
    """
    Read a JSON payload from the cache.

    Args:
        key (str): Cache key.

    Returns:
        Any | None: Decoded payload or None on a miss or cache failure.
    """
    try:
        cached = get_cache().get(key)
    except redis.RedisError as exc:
        logger.warning("Cache read failed for %s: %s", key, exc)
        return None
    if not cached:
        logger.debug("cache miss %s", key)
        return None
    try:
        payload = json.loads(cached)
    except json.JSONDecodeError:
        return None
    logger.debug("cache hit %s", key)
    return payload


def cache_set(key: str, payload: Any):
    try:
        get_cache().setex(key, current_app.config["CACHE_TTL_SECONDS"], json.dumps(payload))
    except redis.RedisError as exc:
        logger.warning("Cache write failed for %s: %s", key, exc)


def cache_delete(*keys: str):
    """
    Remove cache entries, ignoring cache failures.

    Args:
        *keys (str): Keys to delete.
    """
    for key in keys:
        try:
            get_cache().delete(key)
        except redis.RedisError as exc:
            logger.warning("Cache delete failed for %s: %s", key, exc)


def invalidate_detail_cache(cache_prefix: str):
    """
    Clear every cached detail entry under a prefix after a write.

    Args:
        cache_prefix (str): Cache key prefix to purge.
    """
    try:
        cache = get_cache()
        for key in cache.scan_iter(f"{cache_prefix}:*"):
            cache.delete(key)
    except redis.RedisError as exc:
        logger.warning("Cache purge failed for %s: %s", cache_prefix, exc)


def clamp(value: int | float, minimum: int | float, maximum: int | float):
    """
    Return minimum when value is below minimum. Return maximum when value is above maximum. Otherwise return value.

    Args:
        value (int | float): Number to check.
        minimum (int | float): Value to use when `value` is below this argument.
        maximum (int | float): Value to use when `value` exceeds this argument.

    Returns:
        int | float: Result after the bounds check.
    """
    return max(minimum, min(maximum, value))


def safe_int(value: Any, default: int):
    """
    Convert a query-string value into an int.

    Args:
        value (Any): Raw value.
        default (int): Fallback when the value is missing or malformed.

    Returns:
        int: Parsed integer or the default.
    """
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def parse_pagination(args, default_limit: int = DEFAULT_PAGE_SIZE, max_limit: int | None = None, page_key: str = "page", limit_key: str = "limit"):
    """
    Read page and limit query parameters.

    Args:
        args (MultiDict): Request query arguments.
        default_limit (int): Page size when none is given.
        max_limit (int | None): Upper bound for the page size, if any.
        page_key (str): Name of the page parameter.
        limit_key (str): Name of the page size parameter.

    Returns:
        tuple[int, int, int]: Page, page size and offset.
    """
    page = max(safe_int(args.get(page_key), 1), 1)
    limit = safe_int(args.get(limit_key), default_limit)
    limit = clamp(limit, 1, max_limit) if max_limit is not None else max(limit, 1)
    return page, limit, (page - 1) * limit


def build_pagination(total: int, page: int, limit: int):
    """
    Build the pagination block returned next to every window.

    Args:
        total (int): Number of matching items.
        page (int): Current page.
        limit (int): Page size.

    Returns:
        dict: currentPage, totalPages, totalItems and itemsPerPage.
    """
    total_pages = (total + limit - 1) // limit if total else 1
    return {
        "currentPage": page,
        "totalPages": total_pages,
        "totalItems": total,
        "itemsPerPage": limit,
    }


def paginate_query(collection: Collection, query: dict, page: int, limit: int, sort: list | None = None, projection: dict | None = None):
    """
    Fetch one page of documents together with its pagination block.

    Args:
        collection (Collection): Source collection.
        query (dict): MongoDB filter.
        page (int): Current page.
        limit (int): Page size.
        sort (list | None): Sort specification.
        projection (dict | None): Optional projection.

    Returns:
        tuple[list[dict], dict]: Raw documents and pagination metadata.
    """
    cursor = collection.find(query, projection)
    if sort:
        cursor = cursor.sort(sort)
    documents = list(cursor.skip((page - 1) * limit).limit(limit))
    total = collection.count_documents(query)
    return documents, build_pagination(total, page, limit)


def parse_object_id(value: Any, label: str = "ID"):
    """
    Parse an identifier coming from a path or body.

    Args:
        value (Any): Candidate identifier.
        label (str): Name used in the error message.

    Returns:
        ObjectId: Parsed identifier.

    Raises:
        ApiError: When the value is not a valid ObjectId.
    """
    if isinstance(value, ObjectId):
        return value
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        raise ApiError(f"Invalid {label} format")
    return ObjectId(value)


def parse_object_id_list(raw_value: Any, label: str, allow_single: bool = False):
    """
    Parse a list of identifiers from a request body.

    Args:
        raw_value (Any): List (or single id when allowed) from the payload.
        label (str): Name used in error messages, e.g. ``related movie``.
        allow_single (bool): Wrap a lone identifier into a list.

    Returns:
        list[ObjectId]: Parsed identifiers without duplicates, order preserved.

    Raises:
        ApiError: When the shape or any identifier is invalid.
    """
    if allow_single and isinstance(raw_value, str):
        raw_value = [raw_value]
    if not isinstance(raw_value, list):
        raise ApiError(f"{label.capitalize()}s should be an array of ObjectIds.")
    invalid = [str(item) for item in raw_value if not isinstance(item, str) or not ObjectId.is_valid(item)]
    if invalid:
        raise ApiError(f"Each {label} must be a valid ObjectId.", invalid=invalid)
    parsed = []
    for item in raw_value:
        oid = ObjectId(item)
        if oid not in parsed:
            parsed.append(oid)
    return parsed


def find_missing_ids(collection: Collection, ids: list[ObjectId], extra_filter: dict | None = None):
    """
    Return the identifiers that have no matching document.

    Args:
        collection (Collection): Referenced collection.
        ids (list[ObjectId]): Identifiers to check.
        extra_filter (dict | None): Additional constraint on the referenced documents.

    Returns:
        list[ObjectId]: Identifiers not found, in request order.
    """
    if not ids:
        return []
    query = {"_id": {"$in": ids}}
    if extra_filter:
        query.update(extra_filter)
    found = {doc["_id"] for doc in collection.find(query, {"_id": 1})}
    return [oid for oid in ids if oid not in found]


def ensure_ids_exist(collection: Collection, ids: list[ObjectId], label: str, extra_filter: dict | None = None, status_code: int = 400):
    """
    Reject references to documents that do not exist.

    Args:
        collection (Collection): Referenced collection.
        ids (list[ObjectId]): Identifiers from the request.
        label (str): Name used in the error message, e.g. ``related movie``.
        extra_filter (dict | None): Additional constraint on the referenced documents.
        status_code (int): Status of the rejection, 404 when the reference is the request target.

    Raises:
        ApiError: Listing every identifier that was not found.
    """
    missing = find_missing_ids(collection, ids, extra_filter)
    if missing:
        missing_text = ", ".join(str(oid) for oid in missing)
        raise ApiError(
            f"The following {label} IDs do not exist: {missing_text}",
            status_code,
            missing=[str(oid) for oid in missing],
        )


def parse_datetime(value: Any, label: str):
    """
    Parse an ISO 8601 date or datetime into a naive UTC datetime.

    Args:
        value (Any): Raw value such as ``2024-05-01`` or ``2024-05-01T10:00:00Z``.
        label (str): Field name for the error message.

    Returns:
        datetime: Parsed value.

    Raises:
        ApiError: When the value cannot be parsed.
    """
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ApiError(f"{label} must be an ISO 8601 date")
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        raise ApiError(f"{label} must be an ISO 8601 date") from None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def contains_regex(text: str):
    """
    Build a case-insensitive substring match.

    Args:
        text (str): Literal text from the client.

    Returns:
        dict: MongoDB ``$regex`` clause.
    """
    return {"$regex": re.escape(text), "$options": "i"}


def is_string_list(value: Any):
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


def resolve_references(collection: Collection, documents: list[dict], field: str, display_field: str):
    """
    Replace identifiers stored under ``field`` with ``{_id, <display_field>}`` entries.

    Works for single references and lists of references.

    Args:
        collection (Collection): Referenced collection.
        documents (list[dict]): Documents modified in place.
        field (str): Reference field.
        display_field (str): Field copied from the referenced document, e.g. ``title``.

    Returns:
        list[dict]: The same documents.
    """
    ids = set()
    for document in documents:
        value = document.get(field)
        ids.update(value if isinstance(value, list) else [value] if value else [])
    if not ids:
        return documents

    found = {doc["_id"]: doc.get(display_field) for doc in collection.find({"_id": {"$in": list(ids)}}, {display_field: 1})}

    def expand(oid):
        return {"_id": oid, display_field: found.get(oid)}

    for document in documents:
        value = document.get(field)
        if isinstance(value, list):
            document[field] = [expand(oid) for oid in value]
        elif value:
            document[field] = expand(value)
    return documents


def read_json_object():
    """
    Read the request body as a JSON object.

    Returns:
        dict: Decoded body, empty when the request carries none.

    Raises:
        ApiError: When the body is JSON but not an object.
    """
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ApiError("Request body must be a JSON object")
    return payload
