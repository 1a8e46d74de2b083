from bson import ObjectId

from catalog_api.api_movies.movies_functions import AGE_RATINGS
from catalog_api.database import DISCUSSIONS, MOVIES, PEOPLE
from catalog_api.errors import ApiError
from catalog_api.shared_functions import (
    ensure_ids_exist,
    parse_datetime,
    parse_object_id_list,
    parse_pagination,
    utc_now,
)

REQUIRED_MOVIE_FIELDS = ["title", "genre", "directors", "releaseDate", "runtime", "actors", "ageRating", "countryOfOrigin", "language"]
ARRAY_FIELDS = ["awards", "genre", "actors", "directors", "crew", "trivia", "goofs", "soundtrack"]
STRING_ARRAY_FIELDS = ["awards", "genre", "trivia", "goofs", "soundtrack"]
PERSON_ARRAY_FIELDS = {"actors": "actor", "directors": "director", "crew": "crew member"}
SCALAR_FIELDS = ["title", "releaseDate", "runtime", "synopsis", "posterUrl", "ageRating", "boxOffice", "countryOfOrigin", "language"]
BOX_OFFICE_FIELDS = ["openingWeekend", "totalGross", "internationalRevenue"]


def is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_string_list(value, label: str):
    """
    Accept a string or a list of strings.

    Args:
        value (Any): Raw value from the payload.
        label (str): Field name for the error message.

    Returns:
        list[str]: Non-empty stripped strings.
    """
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ApiError(f"{label} must be a string or a list of strings")
    return [item.strip() for item in value if item.strip()]


def parse_runtime(value):
    if not is_number(value) or value < 0:
        raise ApiError("runtime must be a non-negative number of minutes")
    return value


def parse_box_office(value):
    """
    Validate the box office sub-document.

    Args:
        value (Any): Raw value from the payload.

    Returns:
        dict: Known amounts, each a non-negative number.
    """
    if not isinstance(value, dict):
        raise ApiError("boxOffice must be an object")
    box_office = {}
    for field in BOX_OFFICE_FIELDS:
        if value.get(field) is None:
            continue
        if not is_number(value[field]) or value[field] < 0:
            raise ApiError(f"boxOffice.{field} must be a non-negative number")
        box_office[field] = value[field]
    return box_office


def parse_scalar(field: str, value):
    """
    Validate one scalar movie field.

    Args:
        field (str): Field name.
        value (Any): Raw value from the payload.

    Returns:
        Any: Value ready for storage.
    """
    if field == "releaseDate":
        return parse_datetime(value, "releaseDate")
    if field == "runtime":
        return parse_runtime(value)
    if field == "ageRating":
        if value not in AGE_RATINGS:
            raise ApiError(f"ageRating must be one of: {', '.join(AGE_RATINGS)}")
        return value
    if field == "boxOffice":
        return parse_box_office(value)
    if not isinstance(value, str):
        raise ApiError(f"{field} must be a string")
    return value.strip()


def parse_people_field(db, field: str, value):
    """
    Validate a list of person references and check that they exist.

    Args:
        db (Database): Database handle.
        field (str): ``actors``, ``directors`` or ``crew``.
        value (Any): Raw ids (a single id is accepted).

    Returns:
        list[ObjectId]: Parsed identifiers.
    """
    label = PERSON_ARRAY_FIELDS[field]
    ids = parse_object_id_list(value, label, allow_single=True)
    ensure_ids_exist(db[PEOPLE], ids, label)
    return ids


def build_movie_document(db, payload: dict):
    """
    Validate a create request and build the movie document.

    Args:
        db (Database): Database handle.
        payload (dict): JSON body.

    Returns:
        dict: Movie document; averageRating always starts at 0.
    """
    missing = [field for field in REQUIRED_MOVIE_FIELDS if payload.get(field) in (None, "", [])]
    if missing:
        raise ApiError(f"Missing required fields: {', '.join(missing)}", missing=missing)

    document = {}
    for field in SCALAR_FIELDS:
        if payload.get(field) is not None:
            document[field] = parse_scalar(field, payload[field])
    if not document["title"]:
        raise ApiError("title cannot be empty")

    for field in STRING_ARRAY_FIELDS:
        document[field] = parse_string_list(payload[field], field) if payload.get(field) is not None else []

    for field in PERSON_ARRAY_FIELDS:
        document[field] = parse_people_field(db, field, payload[field]) if payload.get(field) is not None else []

    now = utc_now()
    document["averageRating"] = 0
    document["createdAt"] = now
    document["updatedAt"] = now
    return document


def build_movie_update(db, movie: dict, payload: dict):
    """
    Validate an update request against the stored movie.

    Array fields are appended to, scalar fields are replaced and averageRating is ignored.

    Args:
        db (Database): Database handle.
        movie (dict): Current movie document.
        payload (dict): JSON body.

    Returns:
        tuple[dict, list[ObjectId], list[ObjectId]]: Update operators, new actors, new directors.
    """
    push_updates = {}
    set_updates = {}

    for field in ARRAY_FIELDS:
        if payload.get(field) in (None, "", []):
            continue
        if field in PERSON_ARRAY_FIELDS:
            values = parse_people_field(db, field, payload[field])
        else:
            values = parse_string_list(payload[field], field)
        if values:
            push_updates[field] = {"$each": values}

    for field in SCALAR_FIELDS:
        if payload.get(field) is not None:
            set_updates[field] = parse_scalar(field, payload[field])

    for field, label in (("directors", "directors"), ("actors", "actors")):
        if field not in push_updates:
            continue
        existing = set(movie.get(field) or [])
        duplicates = [str(pid) for pid in push_updates[field]["$each"] if pid in existing]
        if duplicates:
            raise ApiError(f"The following {label} are already added: {', '.join(duplicates)}")

    if "title" in set_updates:
        if not set_updates["title"]:
            raise ApiError("title cannot be empty")
        clash = db[MOVIES].find_one({"title": set_updates["title"], "_id": {"$ne": movie["_id"]}}, {"_id": 1})
        if clash:
            raise ApiError("A movie with this title already exists")

    if not push_updates and not set_updates:
        raise ApiError("No fields provided to update")

    set_updates["updatedAt"] = utc_now()
    update = {"$set": set_updates}
    if push_updates:
        update["$push"] = push_updates

    new_actors = push_updates.get("actors", {}).get("$each", [])
    new_directors = push_updates.get("directors", {}).get("$each", [])
    return update, new_actors, new_directors


def add_filmography(db, person_ids: list[ObjectId], movie: dict, role: str):
    """
    Append a filmography entry for the movie to every listed person.

    Args:
        db (Database): Database handle.
        person_ids (list[ObjectId]): People credited on the movie.
        movie (dict): Movie document after the write.
        role (str): ``Actor`` or ``Director``.
    """
    if not person_ids:
        return
    release_date = movie.get("releaseDate")
    entry = {
        "movie": movie["_id"],
        "role": role,
        "year": release_date.year if release_date else None,
    }
    db[PEOPLE].update_many({"_id": {"$in": person_ids}}, {"$push": {"filmography": entry}})


def build_insights(db, args):
    """
    Aggregate genre trends, discussion trends and daily engagement for admins.

    Args:
        db (Database): Database handle.
        args (MultiDict): Request query arguments.

    Returns:
        dict: Insight blocks with their page numbers.
    """
    genre_page, genre_limit, genre_skip = parse_pagination(args, default_limit=5, page_key="genrePage", limit_key="genreLimit")
    actor_page, actor_limit, actor_skip = parse_pagination(args, default_limit=5, page_key="actorPage", limit_key="actorLimit")

    genre_trends = list(db[MOVIES].aggregate([
        {"$unwind": "$genre"},
        {"$group": {"_id": "$genre", "count": {"$sum": 1}}},
        {"$sort": {"count": -1, "_id": 1}},
        {"$skip": genre_skip},
        {"$limit": genre_limit},
    ]))

    actor_trends = list(db[DISCUSSIONS].aggregate([
        {"$match": {"category": "Actors"}},
        {"$unwind": "$relatedMovie"},
        {"$group": {"_id": "$relatedMovie", "count": {"$sum": 1}}},
        {"$sort": {"count": -1, "_id": 1}},
        {"$skip": actor_skip},
        {"$limit": actor_limit},
    ]))

    daily_engagement = list(db[DISCUSSIONS].aggregate([
        {
            "$project": {
                "createdAt": 1,
                "commentsCount": {"$size": {"$ifNull": ["$comments", []]}},
            }
        },
        {
            "$group": {
                "_id": {"$dateToString": {"format": "%Y-%m-%d", "date": "$createdAt"}},
                "discussions": {"$sum": 1},
                "comments": {"$sum": "$commentsCount"},
            }
        },
        {"$sort": {"_id": 1}},
    ]))

    return {
        "genreTrends": genre_trends,
        "genrePage": genre_page,
        "actorTrends": actor_trends,
        "actorPage": actor_page,
        "dailyEngagement": daily_engagement,
    }
