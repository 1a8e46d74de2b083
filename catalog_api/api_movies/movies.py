from flask import Blueprint, jsonify, request

from catalog_api.api_movies.movies_functions import (
    BY_RATING,
    UPCOMING_PROJECTION,
    build_advanced_filter_query,
    build_filter_query,
    build_search_query,
    fetch_movie_detail,
    month_window,
    serialize_movies,
)
from catalog_api.database import MOVIES, get_db
from catalog_api.shared_functions import (
    MAX_SEARCH_PAGE_SIZE,
    contains_regex,
    paginate_query,
    parse_object_id,
    parse_pagination,
    utc_now,
)

bp = Blueprint("movies", __name__)


def movie_window(query: dict, sort: list | None = None, projection: dict | None = None, with_people: bool = False):
    """
    Run a paginated movie query and shape the response.

    Args:
        query (dict): MongoDB filter.
        sort (list | None): Sort specification.
        projection (dict | None): Optional projection.
        with_people (bool): Resolve actor and director names.

    Returns:
        Response: Flask response with the window and pagination block.
    """
    page, limit, _ = parse_pagination(request.args, max_limit=MAX_SEARCH_PAGE_SIZE)
    db = get_db()
    movies, pagination = paginate_query(db[MOVIES], query, page, limit, sort=sort, projection=projection)
    return jsonify({"success": True, "data": serialize_movies(db, movies, with_people), "pagination": pagination})


@bp.route("/upcoming", methods=["GET"])
def get_upcoming_movies():
    """
    Handle GET requests for movies releasing from today on, soonest first.

    Returns:
        Response: Flask response with JSON payload.
    ---
    tags:
      - Movies
    parameters:
      - {in: query, name: page, type: integer, default: 1}
      - {in: query, name: limit, type: integer, default: 10, maximum: 100}
    responses:
      200:
        description: Upcoming movies and pagination block
    """
    return movie_window({"releaseDate": {"$gte": utc_now()}}, sort=[("releaseDate", 1), ("_id", 1)], projection=UPCOMING_PROJECTION)


@bp.route("/search", methods=["GET"])
def search_movies():
    """
    Handle GET requests that search movies by title, genre, director and actor.

    Returns:
        Response: Flask response with JSON payload, or 404 when a director or actor name is unknown.
    ---
    tags:
      - Movies
    parameters:
      - {in: query, name: title, type: string}
      - {in: query, name: genre, type: string}
      - {in: query, name: director, type: string}
      - {in: query, name: actor, type: string}
      - {in: query, name: page, type: integer, default: 1}
      - {in: query, name: limit, type: integer, default: 10, maximum: 100}
    responses:
      200:
        description: Matching movies and pagination block
      404:
        description: Director or actor name not found
    """
    query = build_search_query(get_db(), request.args)
    return movie_window(query, with_people=True)


@bp.route("/filter", methods=["GET"])
def filter_movies():
    """
    Handle GET requests that filter movies by minimum rating and release year.

    Returns:
        Response: Flask response with JSON payload.
    ---
    tags:
      - Movies
    parameters:
      - {in: query, name: rating, type: number, description: Minimum average rating}
      - {in: query, name: releaseYear, type: integer}
      - {in: query, name: page, type: integer, default: 1}
      - {in: query, name: limit, type: integer, default: 10, maximum: 100}
    responses:
      200:
        description: Matching movies and pagination block
      400:
        description: Invalid rating or year
    """
    return movie_window(build_filter_query(request.args))


@bp.route("/advanced-filter", methods=["GET"])
def advanced_filter_movies():
    """
    Handle GET requests that filter movies by decade, country, language, keywords and age rating.

    Returns:
        Response: Flask response with JSON payload.
    ---
    tags:
      - Movies
    parameters:
      - {in: query, name: decade, type: string, description: "Decade such as 1990s"}
      - {in: query, name: country, type: string}
      - {in: query, name: language, type: string}
      - {in: query, name: keywords, type: string}
      - {in: query, name: ageRating, type: string}
      - {in: query, name: page, type: integer, default: 1}
      - {in: query, name: limit, type: integer, default: 10, maximum: 100}
    responses:
      200:
        description: Matching movies and pagination block
      400:
        description: Invalid decade or age rating
    """
    return movie_window(build_advanced_filter_query(request.args))


@bp.route("/top-month", methods=["GET"])
def get_top_movies_of_month():
    """
    Handle GET requests for this month's releases, best rated first.

    Returns:
        Response: Flask response with JSON payload.
    ---
    tags:
      - Movies
    parameters:
      - {in: query, name: page, type: integer, default: 1}
      - {in: query, name: limit, type: integer, default: 10, maximum: 100}
    responses:
      200:
        description: This month's releases by average rating
    """
    return movie_window({"releaseDate": month_window(utc_now())}, sort=BY_RATING)


@bp.route("/top-genre", methods=["GET"])
def get_top_movies_by_genre():
    """
    Handle GET requests for the best rated movies of a genre.

    Returns:
        Response: Flask response with JSON payload.
    ---
    tags:
      - Movies
    parameters:
      - {in: query, name: genre, type: string, required: true}
      - {in: query, name: page, type: integer, default: 1}
      - {in: query, name: limit, type: integer, default: 10, maximum: 100}
    responses:
      200:
        description: Movies of the genre by average rating
      400:
        description: Genre is required
    """
    genre = (request.args.get("genre") or "").strip()
    if not genre:
        return jsonify({"error": "Genre is required"}), 400
    return movie_window({"genre": contains_regex(genre)}, sort=BY_RATING)


@bp.route("/<movie_id>", methods=["GET"])
def get_movie_detail(movie_id: str):
    """
    Handle GET requests for a movie document.

    Args:
        movie_id (str): Identifier from the path segment.

    Returns:
        Response: Flask response with JSON payload and status code.
    ---
    tags:
      - Movies
    parameters:
      - {in: path, name: movie_id, type: string, required: true}
    responses:
      200:
        description: Movie with actor and director names
      400:
        description: Invalid movie ID
      404:
        description: Movie not found
    """
    document = fetch_movie_detail(get_db(), parse_object_id(movie_id, "movie ID"))
    if not document:
        return jsonify({"error": "Movie not found"}), 404
    return jsonify({"success": True, "movie": document})
