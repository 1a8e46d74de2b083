import re
from datetime import datetime

from bson import ObjectId

from catalog_api.database import MOVIES, PEOPLE
from catalog_api.errors import ApiError
from catalog_api.shared_functions import (
    build_cache_key,
    cache_delete,
    cache_get,
    cache_set,
    contains_regex,
    safe_int,
    serialize_document,
)

AGE_RATINGS = ["G", "PG", "PG-13", "R", "NC-17", "Unrated"]
MOVIE_DETAIL_CACHE_PREFIX = "movie_detail"
KEYWORD_FIELDS = ["title", "genre", "synopsis", "trivia", "goofs", "soundtrack", "awards"]
UPCOMING_PROJECTION = {"title": 1, "releaseDate": 1, "genre": 1, "posterUrl": 1}
BY_RATING = [("averageRating", -1), ("_id", 1)]


def attach_people_names(db, movies: list[dict], fields: tuple = ("actors", "directors")):
    """
    Replace person identifiers on movie documents with ``{_id, name}`` entries.

    Args:
        db (Database): Database handle.
        movies (list[dict]): Raw movie documents, modified in place.
        fields (tuple): Reference fields to resolve.

    Returns:
        list[dict]: The same documents.
    """
    person_ids = set()
    for movie in movies:
        for field in fields:
            person_ids.update(pid for pid in movie.get(field) or [] if isinstance(pid, ObjectId))
    if not person_ids:
        return movies

    names = {doc["_id"]: doc.get("name") for doc in db[PEOPLE].find({"_id": {"$in": list(person_ids)}}, {"name": 1})}
    for movie in movies:
        for field in fields:
            if field not in movie:
                continue
            movie[field] = [
                {"_id": pid, "name": names.get(pid)} if isinstance(pid, ObjectId) else pid
                for pid in movie.get(field) or []
            ]
    return movies


def serialize_movies(db, movies: list[dict], with_people: bool = False):
    if with_people:
        attach_people_names(db, movies)
    return [serialize_document(movie) for movie in movies]


def find_person_by_name(db, name: str, person_type: str | None = None):
    """
    Look up the first person whose name contains the text.

    Args:
        db (Database): Database handle.
        name (str): Name fragment, case-insensitive.
        person_type (str | None): Restrict to ``actor``, ``director`` or ``crew``.

    Returns:
        dict | None: Matching person document.
    """
    query = {"name": contains_regex(name)}
    if person_type:
        query["type"] = person_type
    return db[PEOPLE].find_one(query, sort=[("name", 1)])


def build_search_query(db, args):
    """
    Build the movie search filter from title, genre, director and actor parameters.

    Director and actor names are resolved to person ids before the movie query runs.

    Args:
        db (Database): Database handle.
        args (MultiDict): Request query arguments.

    Returns:
        dict: MongoDB filter.

    Raises:
        ApiError: 404 when a director or actor name does not match anyone.
    """
    query = {}
    clauses = []

    title = (args.get("title") or "").strip()
    if title:
        query["title"] = contains_regex(title)

    genre = (args.get("genre") or "").strip()
    if genre:
        query["genre"] = genre

    director = (args.get("director") or "").strip()
    if director:
        person = find_person_by_name(db, director, person_type="director")
        if not person:
            raise ApiError(f"Director with name {director} not found", 404)
        clauses.append({"$or": [{"directors": person["_id"]}, {"actors": person["_id"]}]})

    actor = (args.get("actor") or "").strip()
    if actor:
        person = find_person_by_name(db, actor)
        if not person:
            raise ApiError(f"Actor with name {actor} not found", 404)
        clauses.append({"$or": [{"actors": person["_id"]}, {"directors": person["_id"]}]})

    if clauses:
        query["$and"] = clauses
    return query


def year_window(year: int):
    return {"$gte": datetime(year, 1, 1), "$lt": datetime(year + 1, 1, 1)}


def build_filter_query(args):
    """
    Build the filter for a rating floor and a release year.

    Args:
        args (MultiDict): Request query arguments.

    Returns:
        dict: MongoDB filter.
    """
    query = {}

    rating = args.get("rating")
    if rating not in (None, ""):
        try:
            query["averageRating"] = {"$gte": float(rating)}
        except ValueError:
            raise ApiError("rating must be a number") from None

    release_year = args.get("releaseYear")
    if release_year not in (None, ""):
        year = safe_int(release_year, 0)
        if year < 1 or year > 9998:
            raise ApiError("releaseYear must be a valid year")
        query["releaseDate"] = year_window(year)

    return query


def decade_window(decade: str):
    """
    Turn a decade such as ``1990s`` into a release-date range.

    Args:
        decade (str): Decade label starting with a four digit year.

    Returns:
        dict: Inclusive range from January 1st to December 31st of the last year.
    """
    match = re.match(r"^(\d{4})", decade.strip())
    if not match:
        raise ApiError("decade must look like 1990s")
    start_year = int(match.group(1))
    if start_year < 1 or start_year > 9990:
        raise ApiError("decade is out of range")
    return {"$gte": datetime(start_year, 1, 1), "$lte": datetime(start_year + 9, 12, 31, 23, 59, 59)}


def build_advanced_filter_query(args):
    """
    Build the filter for decade, country, language, keywords and age rating.

    Args:
        args (MultiDict): Request query arguments.

    Returns:
        dict: MongoDB filter where the keyword group is an internal OR.
    """
    query = {}

    decade = (args.get("decade") or "").strip()
    if decade:
        query["releaseDate"] = decade_window(decade)

    country = (args.get("country") or "").strip()
    if country:
        query["countryOfOrigin"] = contains_regex(country)

    language = (args.get("language") or "").strip()
    if language:
        query["language"] = contains_regex(language)

    keywords = (args.get("keywords") or "").strip()
    if keywords:
        query["$or"] = [{field: contains_regex(keywords)} for field in KEYWORD_FIELDS]

    age_rating = (args.get("ageRating") or "").strip()
    if age_rating:
        if age_rating not in AGE_RATINGS:
            raise ApiError(f"ageRating must be one of: {', '.join(AGE_RATINGS)}")
        query["ageRating"] = age_rating

    return query


def month_window(moment: datetime):
    start = datetime(moment.year, moment.month, 1)
    if moment.month == 12:
        end = datetime(moment.year + 1, 1, 1)
    else:
        end = datetime(moment.year, moment.month + 1, 1)
    return {"$gte": start, "$lt": end}


def fetch_movie_detail(db, movie_id: ObjectId):
    """
    Fetch one movie with actor and director names, using Redis for caching.

    Args:
        db (Database): Database handle.
        movie_id (ObjectId): Movie identifier.

    Returns:
        dict | None: Serialized movie or None when not found.
    """
    cache_key = build_cache_key(MOVIE_DETAIL_CACHE_PREFIX, movie_id)
    cached = cache_get(cache_key)
    if cached:
        return cached

    document = db[MOVIES].find_one({"_id": movie_id})
    if not document:
        return None

    attach_people_names(db, [document])
    serialized = serialize_document(document)
    cache_set(cache_key, serialized)
    return serialized


def invalidate_movie_cache(movie_id: ObjectId):
    cache_delete(build_cache_key(MOVIE_DETAIL_CACHE_PREFIX, movie_id))
