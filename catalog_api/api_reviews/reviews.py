import logging

from flask import Blueprint, jsonify
from pymongo.errors import DuplicateKeyError

from catalog_api.api_reviews.reviews_functions import (
    attach_usernames,
    build_highlights,
    compute_average_rating,
    parse_rating,
    parse_review_text,
    update_movie_rating,
)
from catalog_api.database import MOVIES, REVIEWS, get_db
from catalog_api.security import current_user_id, ensure_owner, login_required
from catalog_api.shared_functions import ensure_ids_exist, parse_object_id, read_json_object, serialize_document, utc_now

logger = logging.getLogger(__name__)

bp = Blueprint("reviews", __name__)


@bp.route("/", methods=["POST"])
@login_required
def add_review():
    """
    Handle POST requests that rate and review a movie.

    Returns:
        Response: Flask response with the created review and status code.
    ---
    tags:
      - Reviews
    security:
      - bearerAuth: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [movie, rating]
          properties:
            movie:
              type: string
            rating:
              type: integer
              minimum: 1
              maximum: 5
            reviewText:
              type: string
    responses:
      201:
        description: Review created and average rating recomputed
      400:
        description: Invalid field or movie already reviewed by the caller
      404:
        description: Movie does not exist
    """
    payload = read_json_object()
    if payload.get("movie") is None or payload.get("rating") is None:
        return jsonify({"error": "movie and rating are required, reviewText is optional"}), 400

    rating = parse_rating(payload["rating"])
    review_text = parse_review_text(payload.get("reviewText"))
    movie_id = parse_object_id(payload["movie"], "movie ID")

    db = get_db()
    ensure_ids_exist(db[MOVIES], [movie_id], "movie", status_code=404)

    user_id = current_user_id()
    if db[REVIEWS].find_one({"user": user_id, "movie": movie_id}, {"_id": 1}):
        return jsonify({"error": "You have already reviewed this movie"}), 400

    now = utc_now()
    review = {
        "user": user_id,
        "movie": movie_id,
        "rating": rating,
        "reviewText": review_text or "",
        "createdAt": now,
        "updatedAt": now,
    }
    try:
        review["_id"] = db[REVIEWS].insert_one(review).inserted_id
    except DuplicateKeyError:
        return jsonify({"error": "You have already reviewed this movie"}), 400

    update_movie_rating(db, movie_id)
    return jsonify({"message": "Review and rating added successfully", "review": serialize_document(review)}), 201


@bp.route("/<review_id>", methods=["PUT"])
@login_required
def update_review(review_id: str):
    """
    Handle PUT requests that change the caller's own review.

    Args:
        review_id (str): Identifier from the path segment.

    Returns:
        Response: Flask response with the updated review or error payload.
    ---
    tags:
      - Reviews
    security:
      - bearerAuth: []
    parameters:
      - {in: path, name: review_id, type: string, required: true}
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            rating:
              type: integer
              minimum: 1
              maximum: 5
            reviewText:
              type: string
    responses:
      200:
        description: Updated review
      400:
        description: Neither rating nor reviewText given, or invalid value
      403:
        description: Caller is not the author
      404:
        description: Review not found
    """
    payload = read_json_object()
    if payload.get("rating") is None and payload.get("reviewText") is None:
        return jsonify({"error": "Either rating or reviewText must be provided for update"}), 400

    updates = {}
    if payload.get("rating") is not None:
        updates["rating"] = parse_rating(payload["rating"])
    if payload.get("reviewText") is not None:
        updates["reviewText"] = parse_review_text(payload["reviewText"])

    oid = parse_object_id(review_id, "review ID")
    db = get_db()
    review = db[REVIEWS].find_one({"_id": oid})
    if not review:
        return jsonify({"error": "Review not found"}), 404
    ensure_owner(review["user"], "You are not authorized to update this review")

    updates["updatedAt"] = utc_now()
    db[REVIEWS].update_one({"_id": oid}, {"$set": updates})
    review.update(updates)

    if "rating" in updates:
        update_movie_rating(db, review["movie"])
    return jsonify({"message": "Review updated successfully", "review": serialize_document(review)})


@bp.route("/<review_id>", methods=["DELETE"])
@login_required
def delete_review(review_id: str):
    """
    Handle DELETE requests for a review, by its author or an admin.

    Args:
        review_id (str): Identifier from the path segment.

    Returns:
        Response: Flask response with delete status payload.
    ---
    tags:
      - Reviews
    security:
      - bearerAuth: []
    parameters:
      - {in: path, name: review_id, type: string, required: true}
    responses:
      200:
        description: Review deleted with the recomputed average rating
      403:
        description: Caller is neither the author nor an admin
      404:
        description: Review not found
    """
    oid = parse_object_id(review_id, "review ID")
    db = get_db()
    review = db[REVIEWS].find_one({"_id": oid})
    if not review:
        return jsonify({"error": "Review not found"}), 404
    ensure_owner(review["user"], "You are not authorized to delete this review", allow_admin=True)

    db[REVIEWS].delete_one({"_id": oid})
    average = update_movie_rating(db, review["movie"])
    return jsonify({"message": "Review deleted successfully", "averageRating": average})


@bp.route("/<movie_id>", methods=["GET"])
def get_movie_reviews(movie_id: str):
    """
    Handle GET requests for every review of a movie, newest first.

    Args:
        movie_id (str): Identifier from the path segment.

    Returns:
        Response: Flask response with the reviews or a 404 payload.
    ---
    tags:
      - Reviews
    parameters:
      - {in: path, name: movie_id, type: string, required: true}
    responses:
      200:
        description: Reviews with reviewer usernames, newest first
      404:
        description: No reviews found for this movie
    """
    oid = parse_object_id(movie_id, "movie ID")
    db = get_db()
    reviews = list(db[REVIEWS].find({"movie": oid}).sort([("createdAt", -1), ("_id", -1)]))
    if not reviews:
        return jsonify({"error": "No reviews found for this movie"}), 404

    attach_usernames(db, reviews)
    return jsonify({"success": True, "reviews": [serialize_document(review) for review in reviews]})


@bp.route("/average/<movie_id>", methods=["GET"])
def get_average_rating(movie_id: str):
    """
    Handle GET requests for the mean rating of a movie's current reviews.

    ---
    tags:
      - Reviews
    parameters:
      - {in: path, name: movie_id, type: string, required: true}
    responses:
      200:
        description: Average rating and number of reviews
        schema:
          type: object
          properties:
            averageRating:
              type: number
            totalReviews:
              type: integer
      404:
        description: No reviews found for this movie
    """
    oid = parse_object_id(movie_id, "movie ID")
    average, count = compute_average_rating(get_db(), oid)
    if not count:
        return jsonify({"error": "No reviews found for this movie"}), 404
    return jsonify({"averageRating": average, "totalReviews": count})


@bp.route("/highlights/<movie_id>", methods=["GET"])
def get_review_highlights(movie_id: str):
    """
    Handle GET requests for the top rated and the longest reviews of a movie.

    Args:
        movie_id (str): Identifier from the path segment.

    Returns:
        Response: Flask response with both highlight lists.
    ---
    tags:
      - Reviews
    parameters:
      - {in: path, name: movie_id, type: string, required: true}
    responses:
      200:
        description: Top rated reviews and longest reviews
    """
    oid = parse_object_id(movie_id, "movie ID")
    reviews = list(get_db()[REVIEWS].find({"movie": oid}))
    return jsonify(build_highlights(reviews))
