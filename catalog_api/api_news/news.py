import logging

from flask import Blueprint, jsonify, request
from pymongo import ReturnDocument

from catalog_api.api_news.news_functions import (
    NEWS_CATEGORIES,
    fetch_news_detail,
    invalidate_news_cache,
    parse_news_payload,
    populate_news,
)
from catalog_api.database import NEWS, get_db
from catalog_api.security import admin_required
from catalog_api.shared_functions import (
    paginate_query,
    parse_object_id,
    parse_pagination,
    read_json_object,
    serialize_document,
    utc_now,
)

logger = logging.getLogger(__name__)

bp = Blueprint("news", __name__)

NEWEST_FIRST = [("publishedDate", -1), ("_id", -1)]


@bp.route("/", methods=["GET"])
def get_news():
    """
    Handle GET requests for news articles, newest first.

    Returns:
        Response: Flask response with articles and pagination block.
    ---
    tags:
      - News
    parameters:
      - {in: query, name: page, type: integer, default: 1}
      - {in: query, name: limit, type: integer, default: 10}
    responses:
      200:
        description: News articles and pagination block
    """
    page, limit, _ = parse_pagination(request.args)
    db = get_db()
    articles, pagination = paginate_query(db[NEWS], {}, page, limit, sort=NEWEST_FIRST)
    return jsonify({"success": True, "news": populate_news(db, articles), "pagination": pagination})


@bp.route("/category/<category>", methods=["GET"])
def get_news_by_category(category: str):
    """
    Handle GET requests for the articles of one category.

    Args:
        category (str): Category from the path segment.

    Returns:
        Response: Flask response with articles, or 404 when the category has none.
    ---
    tags:
      - News
    parameters:
      - {in: path, name: category, type: string, required: true, enum: [Movies, Actors, Projects, Industry, Drama]}
      - {in: query, name: page, type: integer, default: 1}
      - {in: query, name: limit, type: integer, default: 10}
    responses:
      200:
        description: News articles of the category and pagination block
      400:
        description: Invalid category
      404:
        description: No news articles found for this category
    """
    if category not in NEWS_CATEGORIES:
        return jsonify({"error": f"Category must be one of: {', '.join(NEWS_CATEGORIES)}"}), 400

    page, limit, _ = parse_pagination(request.args)
    db = get_db()
    articles, pagination = paginate_query(db[NEWS], {"category": category}, page, limit, sort=NEWEST_FIRST)
    if not articles:
        return jsonify({"error": "No news articles found for this category", "pagination": pagination}), 404
    return jsonify({"success": True, "news": populate_news(db, articles), "pagination": pagination})


@bp.route("/<news_id>", methods=["GET"])
def get_news_article(news_id: str):
    """
    Handle GET requests for one news article with related movie titles and actor names.

    ---
    tags:
      - News
    parameters:
      - {in: path, name: news_id, type: string, required: true}
    responses:
      200:
        description: News article
      404:
        description: News article not found
    """
    article = fetch_news_detail(get_db(), parse_object_id(news_id, "news ID"))
    if not article:
        return jsonify({"error": "News article not found"}), 404
    return jsonify({"success": True, "news": article})


@bp.route("/add-news", methods=["POST"])
@admin_required
def add_news():
    """
    Handle POST requests that publish an article.

    Returns:
        Response: Flask response with the created article and status code.
    ---
    tags:
      - News
    security:
      - bearerAuth: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [title, description, content, category]
          properties:
            title:
              type: string
            description:
              type: string
            content:
              type: string
            category:
              type: string
              enum: [Movies, Actors, Projects, Industry, Drama]
            relatedMovies:
              type: array
              items:
                type: string
            relatedActors:
              type: array
              items:
                type: string
    responses:
      201:
        description: News article created
      400:
        description: Missing or invalid field, or unknown related movie or actor
      403:
        description: Caller is not an admin
    """
    db = get_db()
    article = parse_news_payload(db, read_json_object())
    article.setdefault("relatedMovies", [])
    article.setdefault("relatedActors", [])
    article["publishedDate"] = utc_now()

    article["_id"] = db[NEWS].insert_one(article).inserted_id
    logger.info("News article %s published", article["_id"])
    return jsonify({"success": True, "news": serialize_document(article)}), 201


@bp.route("/update-news/<news_id>", methods=["PUT"])
@admin_required
def update_news(news_id: str):
    """
    Handle PUT requests for an article. Only the fields sent are changed.

    Args:
        news_id (str): Identifier from the path segment.

    Returns:
        Response: Flask response with the updated article or error payload.
    ---
    tags:
      - News
    security:
      - bearerAuth: []
    parameters:
      - {in: path, name: news_id, type: string, required: true}
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            title:
              type: string
            description:
              type: string
            content:
              type: string
            category:
              type: string
            relatedMovies:
              type: array
              items:
                type: string
            relatedActors:
              type: array
              items:
                type: string
    responses:
      200:
        description: Updated news article
      400:
        description: Nothing to update or invalid field
      403:
        description: Caller is not an admin
      404:
        description: News article not found
    """
    oid = parse_object_id(news_id, "news ID")
    db = get_db()
    if not db[NEWS].find_one({"_id": oid}, {"_id": 1}):
        return jsonify({"error": "News article not found"}), 404

    updates = parse_news_payload(db, read_json_object(), partial=True)
    if not updates:
        return jsonify({"error": "No fields provided to update. Nothing was updated."}), 400

    updated = db[NEWS].find_one_and_update({"_id": oid}, {"$set": updates}, return_document=ReturnDocument.AFTER)
    invalidate_news_cache(oid)
    return jsonify({"success": True, "message": "News article updated successfully", "news": serialize_document(updated)})


@bp.route("/delete-news/<news_id>", methods=["DELETE"])
@admin_required
def delete_news(news_id: str):
    """
    Handle DELETE requests for a news article.

    ---
    tags:
      - News
    security:
      - bearerAuth: []
    parameters:
      - {in: path, name: news_id, type: string, required: true}
    responses:
      200:
        description: News article deleted
      403:
        description: Caller is not an admin
      404:
        description: News article not found
    """
    oid = parse_object_id(news_id, "news ID")
    deleted = get_db()[NEWS].find_one_and_delete({"_id": oid})
    if not deleted:
        return jsonify({"error": "News article not found"}), 404
    invalidate_news_cache(oid)
    return jsonify({"success": True, "message": "News article deleted successfully"})
