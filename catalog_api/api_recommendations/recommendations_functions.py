from catalog_api.api_movies.movies_functions import BY_RATING, serialize_movies
from catalog_api.database import MOVIES
from catalog_api.shared_functions import paginate_query


def build_similar_query(movie: dict):
    """
    Match other movies sharing a genre, a director or an actor with ``movie``.

    Args:
        movie (dict): Source movie document.

    Returns:
        dict: MongoDB filter excluding the source movie.
    """
    return {
        "_id": {"$ne": movie["_id"]},
        "$or": [
            {"genre": {"$in": movie.get("genre") or []}},
            {"directors": {"$in": movie.get("directors") or []}},
            {"actors": {"$in": movie.get("actors") or []}},
        ],
    }


def movie_block(db, query: dict, page: int, limit: int, sort: list | None = None):
    """
    Fetch one independently paginated block of movies.

    Args:
        db (Database): Database handle.
        query (dict): MongoDB filter.
        page (int): Current page.
        limit (int): Page size.
        sort (list | None): Sort specification.

    Returns:
        dict: ``movies`` and ``pagination`` for the block.
    """
    movies, pagination = paginate_query(db[MOVIES], query, page, limit, sort=sort or [("_id", 1)])
    return {"movies": serialize_movies(db, movies), "pagination": pagination}


def rating_block(db, page: int, limit: int):
    # Trending and top rated both rank by stored average rating.
    return movie_block(db, {}, page, limit, sort=BY_RATING)
