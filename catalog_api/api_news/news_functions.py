from bson import ObjectId

from catalog_api.database import MOVIES, NEWS, PEOPLE
from catalog_api.errors import ApiError
from catalog_api.shared_functions import (
    build_cache_key,
    cache_delete,
    cache_get,
    cache_set,
    ensure_ids_exist,
    parse_object_id_list,
    resolve_references,
    serialize_document,
)

NEWS_CATEGORIES = ["Movies", "Actors", "Projects", "Industry", "Drama"]
NEWS_TEXT_FIELDS = ["title", "description", "content"]
NEWS_DETAIL_CACHE_PREFIX = "news_detail"


def parse_news_payload(db, payload: dict, partial: bool = False):
    """
    Validate a news article create or update request.

    Args:
        db (Database): Database handle.
        payload (dict): JSON body.
        partial (bool): Only validate the fields that were sent.

    Returns:
        dict: Fields ready for storage.
    """
    fields = {}
    for field in NEWS_TEXT_FIELDS:
        value = payload.get(field)
        if value is None and partial:
            continue
        if not isinstance(value, str) or not value.strip():
            raise ApiError(f"{field.capitalize()} is required and must be a string.")
        fields[field] = value.strip()

    category = payload.get("category")
    if category is not None or not partial:
        if category not in NEWS_CATEGORIES:
            raise ApiError(f"Category must be one of: {', '.join(NEWS_CATEGORIES)}")
        fields["category"] = category

    if payload.get("relatedMovies") is not None:
        movie_ids = parse_object_id_list(payload["relatedMovies"], "related movie")
        ensure_ids_exist(db[MOVIES], movie_ids, "related movie")
        fields["relatedMovies"] = movie_ids
    if payload.get("relatedActors") is not None:
        actor_ids = parse_object_id_list(payload["relatedActors"], "related actor")
        ensure_ids_exist(db[PEOPLE], actor_ids, "related actor")
        fields["relatedActors"] = actor_ids
    return fields


def populate_news(db, articles: list[dict]):
    resolve_references(db[MOVIES], articles, "relatedMovies", "title")
    resolve_references(db[PEOPLE], articles, "relatedActors", "name")
    return [serialize_document(article) for article in articles]


def fetch_news_detail(db, news_id: ObjectId):
    """
    Fetch one article with related titles and names, using Redis for caching.

    Args:
        db (Database): Database handle.
        news_id (ObjectId): Article identifier.

    Returns:
        dict | None: Serialized article or None when not found.
    """
    cache_key = build_cache_key(NEWS_DETAIL_CACHE_PREFIX, news_id)
    cached = cache_get(cache_key)
    if cached:
        return cached

    article = db[NEWS].find_one({"_id": news_id})
    if not article:
        return None

    serialized = populate_news(db, [article])[0]
    cache_set(cache_key, serialized)
    return serialized


def invalidate_news_cache(news_id: ObjectId):
    cache_delete(build_cache_key(NEWS_DETAIL_CACHE_PREFIX, news_id))
