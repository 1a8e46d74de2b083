import logging
import math

from bson import ObjectId

from catalog_api.api_movies.movies_functions import invalidate_movie_cache
from catalog_api.database import MOVIES, REVIEWS, USERS
from catalog_api.errors import ApiError
from catalog_api.shared_functions import serialize_document

logger = logging.getLogger(__name__)

HIGHLIGHT_SIZE = 5
TOP_RATED_FLOOR = 4


def parse_rating(value):
    """
    Validate a review rating.

    Args:
        value (Any): Raw value from the payload.

    Returns:
        int: Rating between 1 and 5.

    Raises:
        ApiError: When the value is not a whole number in range.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value) or int(value) != value:
        raise ApiError("Rating must be a whole number between 1 and 5")
    if value < 1 or value > 5:
        raise ApiError("Rating must be between 1 and 5")
    return int(value)


def parse_review_text(value):
    if value is None:
        return None
    if not isinstance(value, str):
        raise ApiError("reviewText must be a string")
    return value.strip()


def compute_average_rating(db, movie_id: ObjectId):
    """
    Average every current rating of a movie.

    Args:
        db (Database): Database handle.
        movie_id (ObjectId): Movie identifier.

    Returns:
        tuple[float, int]: Mean rating and number of reviews (0.0, 0 when none).
    """
    ratings = [review["rating"] for review in db[REVIEWS].find({"movie": movie_id}, {"rating": 1})]
    if not ratings:
        return 0.0, 0
    return sum(ratings) / len(ratings), len(ratings)


def update_movie_rating(db, movie_id: ObjectId):
    """
    Recompute a movie's stored average rating from all of its reviews.

    Args:
        db (Database): Database handle.
        movie_id (ObjectId): Movie identifier.

    Returns:
        float: Value written onto the movie.
    """
    average, count = compute_average_rating(db, movie_id)
    db[MOVIES].update_one({"_id": movie_id}, {"$set": {"averageRating": average}})
    invalidate_movie_cache(movie_id)
    logger.debug("Movie %s average rating %.2f over %d reviews", movie_id, average, count)
    return average


def attach_usernames(db, reviews: list[dict]):
    """
    Replace the user reference of each review with ``{_id, username}``.

    Args:
        db (Database): Database handle.
        reviews (list[dict]): Review documents, modified in place.

    Returns:
        list[dict]: The same documents.
    """
    user_ids = list({review["user"] for review in reviews})
    users = {user["_id"]: user for user in db[USERS].find({"_id": {"$in": user_ids}}, {"username": 1})}
    for review in reviews:
        user = users.get(review["user"])
        review["user"] = {"_id": review["user"], "username": user.get("username") if user else None}
    return reviews


def build_highlights(reviews: list[dict]):
    """
    Pick the best rated and the most detailed reviews.

    Args:
        reviews (list[dict]): Every review of a movie.

    Returns:
        dict: ``topRatedReviews`` and ``mostDiscussedReviews`` lists.
    """
    top_rated = sorted(
        (review for review in reviews if review["rating"] >= TOP_RATED_FLOOR),
        key=lambda review: (review["rating"], review["createdAt"]),
        reverse=True,
    )
    most_discussed = sorted(reviews, key=lambda review: len(review.get("reviewText") or ""), reverse=True)
    return {
        "topRatedReviews": [serialize_document(review) for review in top_rated[:HIGHLIGHT_SIZE]],
        "mostDiscussedReviews": [serialize_document(review) for review in most_discussed[:HIGHLIGHT_SIZE]],
    }
