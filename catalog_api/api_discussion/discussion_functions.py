from bson import ObjectId

from catalog_api.database import DISCUSSIONS, MOVIES, USERS
from catalog_api.errors import ApiError
from catalog_api.shared_functions import (
    ensure_ids_exist,
    parse_object_id,
    parse_object_id_list,
    resolve_references,
    serialize_document,
)

DISCUSSION_CATEGORIES = ["General", "Genres", "Actors", "Movies", "Drama"]
MIN_TITLE_LENGTH = 3
MIN_CONTENT_LENGTH = 10


def validate_discussion(payload: dict, partial: bool = False):
    """
    Collect every validation problem of a discussion payload.

    Args:
        payload (dict): JSON body.
        partial (bool): Only check the fields that were sent.

    Returns:
        list[str]: Error messages, empty when the payload is valid.
    """
    errors = []
    title = payload.get("title")
    if title is not None or not partial:
        if not isinstance(title, str) or len(title.strip()) < MIN_TITLE_LENGTH:
            errors.append(f"Title is required and must be at least {MIN_TITLE_LENGTH} characters long.")
    content = payload.get("content")
    if content is not None or not partial:
        if not isinstance(content, str) or len(content.strip()) < MIN_CONTENT_LENGTH:
            errors.append(f"Content is required and must be at least {MIN_CONTENT_LENGTH} characters long.")
    category = payload.get("category")
    if category is not None or not partial:
        if category not in DISCUSSION_CATEGORIES:
            errors.append(f"Category is required and must be one of {', '.join(DISCUSSION_CATEGORIES)}.")
    return errors


def build_discussion_fields(db, payload: dict, partial: bool = False):
    """
    Turn a validated payload into stored fields.

    Args:
        db (Database): Database handle.
        payload (dict): JSON body.
        partial (bool): Only convert the fields that were sent.

    Returns:
        dict: Fields ready for storage.
    """
    errors = validate_discussion(payload, partial)
    if errors:
        raise ApiError(errors[0], errors=errors)

    fields = {}
    for field in ("title", "content"):
        if payload.get(field) is not None:
            fields[field] = payload[field].strip()
    if payload.get("category") is not None:
        fields["category"] = payload["category"]

    if "relatedMovie" in payload and payload["relatedMovie"] is not None:
        if payload["relatedMovie"] == "":
            raise ApiError("relatedMovie cannot be empty")
        movie_ids = parse_object_id_list(payload["relatedMovie"], "related movie", allow_single=True)
        ensure_ids_exist(db[MOVIES], movie_ids, "related movie")
        fields["relatedMovie"] = movie_ids
    elif not partial:
        fields["relatedMovie"] = []
    return fields


def populate_discussions(db, discussions: list[dict]):
    """
    Serialize discussions with creator usernames and related movie titles.

    Args:
        db (Database): Database handle.
        discussions (list[dict]): Raw discussion documents.

    Returns:
        list[dict]: Serialized discussions.
    """
    resolve_references(db[USERS], discussions, "createdBy", "username")
    resolve_references(db[MOVIES], discussions, "relatedMovie", "title")
    comments = [comment for discussion in discussions for comment in discussion.get("comments") or []]
    resolve_references(db[USERS], comments, "createdBy", "username")
    return [serialize_document(discussion) for discussion in discussions]


def load_discussion(db, discussion_id: str):
    oid = parse_object_id(discussion_id, "discussion ID")
    discussion = db[DISCUSSIONS].find_one({"_id": oid})
    if not discussion:
        raise ApiError("Discussion not found.", 404)
    return discussion


def find_comment(discussion: dict, comment_id: ObjectId):
    for comment in discussion.get("comments") or []:
        if comment["_id"] == comment_id:
            return comment
    return None
