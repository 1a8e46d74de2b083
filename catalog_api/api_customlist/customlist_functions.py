from catalog_api.api_movies.movies_functions import attach_people_names
from catalog_api.database import CUSTOM_LISTS, MOVIES
from catalog_api.errors import ApiError
from catalog_api.security import ensure_owner
from catalog_api.shared_functions import parse_object_id, serialize_document

LIST_MOVIE_PROJECTION = {"title": 1, "genre": 1, "releaseDate": 1, "synopsis": 1, "ageRating": 1, "actors": 1, "directors": 1}


def populate_list_movies(db, custom_lists: list[dict]):
    """
    Serialize custom lists with their movies expanded, keeping list order.

    Args:
        db (Database): Database handle.
        custom_lists (list[dict]): Raw list documents.

    Returns:
        list[dict]: Serialized lists.
    """
    movie_ids = {oid for custom_list in custom_lists for oid in custom_list.get("movies", [])}
    movies = {}
    if movie_ids:
        found = list(db[MOVIES].find({"_id": {"$in": list(movie_ids)}}, LIST_MOVIE_PROJECTION))
        attach_people_names(db, found)
        movies = {movie["_id"]: movie for movie in found}

    payload = []
    for custom_list in custom_lists:
        document = dict(custom_list)
        document["movies"] = [movies[oid] for oid in custom_list.get("movies", []) if oid in movies]
        payload.append(serialize_document(document))
    return payload


def load_owned_list(db, list_id: str, action: str):
    """
    Fetch a custom list the caller owns.

    Args:
        db (Database): Database handle.
        list_id (str): Identifier from the path segment.
        action (str): Verb phrase for the 403 message, e.g. ``update this custom list``.

    Returns:
        dict: Custom list document.

    Raises:
        ApiError: 404 when missing, 403 when owned by someone else.
    """
    oid = parse_object_id(list_id, "list ID")
    custom_list = db[CUSTOM_LISTS].find_one({"_id": oid})
    if not custom_list:
        raise ApiError("Custom list not found", 404)
    ensure_owner(custom_list["user"], f"You are not authorized to {action}")
    return custom_list


def parse_list_text(payload: dict, field: str):
    value = payload.get(field)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ApiError(f"{field} must be a string")
    return value.strip()
