from bson import ObjectId

from catalog_api.api_movies.movies_functions import MOVIE_DETAIL_CACHE_PREFIX
from catalog_api.api_news.news_functions import NEWS_DETAIL_CACHE_PREFIX
from catalog_api.database import PEOPLE
from catalog_api.errors import ApiError
from catalog_api.shared_functions import (
    build_cache_key,
    build_pagination,
    cache_delete,
    cache_get,
    cache_set,
    contains_regex,
    invalidate_detail_cache,
    parse_datetime,
    parse_object_id,
    serialize_document,
)

PERSON_TYPES = ["actor", "director", "crew"]
SOCIAL_LINK_FIELDS = ["twitter", "instagram", "facebook"]
PEOPLE_DETAIL_CACHE_PREFIX = "people_detail"
SORT_OPTIONS = {
    "name": [("name", 1), ("_id", 1)],
    "name-desc": [("name", -1), ("_id", 1)],
    "newest": [("createdAt", -1), ("_id", -1)],
}


def build_people_query(search: str | None, person_type: str | None):
    """
    Build the MongoDB filter for a people listing.

    Args:
        search (str | None): Name fragment.
        person_type (str | None): ``actor``, ``director``, ``crew`` or ``all``.

    Returns:
        dict: Filter for the people collection.
    """
    query = {}
    if search:
        query["name"] = contains_regex(search)
    if person_type and person_type != "all":
        if person_type not in PERSON_TYPES:
            raise ApiError("Type must be either actor, director, or crew")
        query["type"] = person_type
    return query


def parse_awards(value):
    """
    Validate award entries of the form ``{awardName, year}``.

    Args:
        value (Any): Raw list from the payload.

    Returns:
        list[dict]: Normalized awards.
    """
    if not isinstance(value, list):
        raise ApiError("awards must be a list")
    awards = []
    for entry in value:
        if not isinstance(entry, dict) or not isinstance(entry.get("awardName"), str):
            raise ApiError("Each award needs an awardName")
        year = entry.get("year")
        if year is not None and (not isinstance(year, int) or isinstance(year, bool)):
            raise ApiError("Award year must be an integer")
        awards.append({"awardName": entry["awardName"].strip(), "year": year})
    return awards


def parse_filmography(value):
    if not isinstance(value, list):
        raise ApiError("filmography must be a list")
    entries = []
    for entry in value:
        if not isinstance(entry, dict):
            raise ApiError("Each filmography entry must be an object")
        year = entry.get("year")
        if year is not None and (not isinstance(year, int) or isinstance(year, bool)):
            raise ApiError("Filmography year must be an integer")
        entries.append({
            "movie": parse_object_id(entry.get("movie"), "filmography movie ID"),
            "role": entry.get("role") if isinstance(entry.get("role"), str) else None,
            "year": year,
        })
    return entries


def parse_social_links(value):
    if not isinstance(value, dict):
        raise ApiError("socialLinks must be an object")
    links = {}
    for field in SOCIAL_LINK_FIELDS:
        if value.get(field) is None:
            continue
        if not isinstance(value[field], str):
            raise ApiError(f"socialLinks.{field} must be a string")
        links[field] = value[field].strip()
    return links


def parse_person_payload(payload: dict, partial: bool = False):
    """
    Validate the fields of a person create or update request.

    Args:
        payload (dict): JSON body.
        partial (bool): Allow missing name and type (updates).

    Returns:
        dict: Fields ready for storage.
    """
    fields = {}

    name = payload.get("name")
    if name is not None or not partial:
        if not isinstance(name, str) or not name.strip():
            raise ApiError("Name and type are required" if not partial else "Name cannot be empty")
        fields["name"] = name.strip()

    person_type = payload.get("type")
    if person_type is not None or not partial:
        if not person_type:
            raise ApiError("Name and type are required")
        if person_type not in PERSON_TYPES:
            raise ApiError("Type must be either actor, director, or crew")
        fields["type"] = person_type

    if payload.get("biography") is not None:
        if not isinstance(payload["biography"], str):
            raise ApiError("biography must be a string")
        fields["biography"] = payload["biography"]
    if payload.get("birthDate") is not None:
        fields["birthDate"] = parse_datetime(payload["birthDate"], "birthDate")
    if payload.get("awards") is not None:
        fields["awards"] = parse_awards(payload["awards"])
    if payload.get("photos") is not None:
        photos = payload["photos"]
        if not isinstance(photos, list) or not all(isinstance(url, str) for url in photos):
            raise ApiError("photos must be a list of URLs")
        fields["photos"] = photos
    if payload.get("filmography") is not None:
        fields["filmography"] = parse_filmography(payload["filmography"])
    if payload.get("socialLinks") is not None:
        fields["socialLinks"] = parse_social_links(payload["socialLinks"])

    return fields


def build_people_payload(documents: list[dict], total: int, page: int, limit: int, sort_option: str, person_type: str | None, search: str | None):
    """
    Prepare the API payload for a people listing.

    Args:
        documents (list[dict]): People on the page.
        total (int): Number of matching people.
        page (int): Page number from the request.
        limit (int): Page length.
        sort_option (str): Sort choice.
        person_type (str | None): Type filter used in the query.
        search (str | None): Search term from the query.

    Returns:
        dict: Payload for JSON output.
    """
    return {
        "success": True,
        "people": [serialize_document(item) for item in documents],
        "pagination": build_pagination(total, page, limit),
        "sort": sort_option,
        "type": person_type or "all",
        "search": search or "",
    }


def fetch_person_detail(db, person_id: ObjectId):
    """
    Fetch a person, leveraging Redis for caching.

    Args:
        db (Database): Database handle.
        person_id (ObjectId): Person identifier.

    Returns:
        dict | None: Serialized person or None when not found.
    """
    cache_key = build_cache_key(PEOPLE_DETAIL_CACHE_PREFIX, person_id)
    cached = cache_get(cache_key)
    if cached:
        return cached

    document = db[PEOPLE].find_one({"_id": person_id})
    if not document:
        return None

    serialized = serialize_document(document)
    cache_set(cache_key, serialized)
    return serialized


def invalidate_people_cache(person_ids: list[ObjectId]):
    cache_delete(*[build_cache_key(PEOPLE_DETAIL_CACHE_PREFIX, pid) for pid in person_ids])


def invalidate_people_dependents():
    # Movie and news details embed person names.
    invalidate_detail_cache(MOVIE_DETAIL_CACHE_PREFIX)
    invalidate_detail_cache(NEWS_DETAIL_CACHE_PREFIX)
