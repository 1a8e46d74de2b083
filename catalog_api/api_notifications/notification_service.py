import html
import logging
from datetime import datetime

from catalog_api.database import MOVIES, PEOPLE, USERS
from catalog_api.shared_functions import add_months, utc_now

logger = logging.getLogger(__name__)

EMAIL_SUBJECT = "Upcoming Movies Notification"


def find_relevant_movies(user: dict, movies: list[dict]):
    """
    Select the upcoming movies matching a user's favorite genres or actors.

    Args:
        user (dict): User document.
        movies (list[dict]): Upcoming movies.

    Returns:
        list[dict]: Movies sharing a genre or featuring a favorite actor.
    """
    profile = user.get("profile") or {}
    genres = set(profile.get("favoriteGenres") or [])
    actors = set(profile.get("favoriteActors") or [])
    return [
        movie for movie in movies
        if genres.intersection(movie.get("genre") or []) or actors.intersection(movie.get("actors") or [])
    ]


def render_email(user: dict, movies: list[dict], actor_names: dict):
    """
    Build the plain text and HTML bodies listing the movies for one user.

    Args:
        user (dict): Recipient user document.
        movies (list[dict]): Relevant movies.
        actor_names (dict): Person id to name.

    Returns:
        tuple[str, str]: Plain text message and HTML message.
    """
    username = user.get("username", "")
    text_blocks = []
    html_blocks = []
    for movie in movies:
        title = movie.get("title", "")
        release_date = movie["releaseDate"].strftime("%Y-%m-%d")
        synopsis = movie.get("synopsis") or "No synopsis available"
        actors = ", ".join(actor_names[pid] for pid in movie.get("actors") or [] if pid in actor_names) or "Unknown"
        soundtrack = ", ".join(movie.get("soundtrack") or [])

        text_block = [title, f"Release Date: {release_date}", f"Synopsis: {synopsis}", f"Actors: {actors}"]
        html_block = [
            "<div>",
            f"<h3>{html.escape(title)}</h3>",
            f"<p><strong>Release Date:</strong> {release_date}</p>",
            f"<p><strong>Synopsis:</strong> {html.escape(synopsis)}</p>",
            f"<p><strong>Actors:</strong> {html.escape(actors)}</p>",
        ]
        if soundtrack:
            text_block.append(f"Soundtrack: {soundtrack}")
            html_block.append(f"<p><strong>Soundtrack:</strong> {html.escape(soundtrack)}</p>")
        html_block.append("</div>")
        text_blocks.append("\n".join(text_block))
        html_blocks.append("".join(html_block))

    text = (
        f"Hello {username},\n\n"
        "Here are some upcoming movies based on your preferences:\n\n"
        + "\n\n".join(text_blocks)
        + "\n\nBest regards,\nThe Movie Catalog Team"
    )
    body = (
        "<h2>Upcoming Movies You Might Like</h2>"
        f"<p>Hello {html.escape(username)},</p>"
        "<p>Here are some upcoming movies based on your preferences:</p>"
        + "<hr>".join(html_blocks)
        + "<p>Best regards,<br>The Movie Catalog Team</p>"
    )
    return text, body


def check_upcoming_movies(db, email_sender, now: datetime | None = None):
    """
    Email every opted-in user about next month's releases that match their tastes.

    A failed send is logged and skipped; the rest of the batch still runs.

    Args:
        db (Database): Database handle.
        email_sender (SendGridEmailSender): Object with a ``send(to, subject, text, html)`` method.
        now (datetime | None): Start of the window, defaults to the current UTC time.

    Returns:
        dict: Counts of movies, users, sent and failed emails.
    """
    start = now or utc_now()
    end = add_months(start, 1)

    movies = list(db[MOVIES].find({"releaseDate": {"$gte": start, "$lte": end}}).sort("releaseDate", 1))
    users = list(db[USERS].find({
        "role": {"$ne": "admin"},
        "$or": [{"remindersForNewReleases": True}, {"sendNotifications": True}],
    }))

    actor_ids = list({pid for movie in movies for pid in movie.get("actors") or []})
    actor_names = {}
    if actor_ids:
        actor_names = {person["_id"]: person.get("name") for person in db[PEOPLE].find({"_id": {"$in": actor_ids}}, {"name": 1})}

    summary = {"upcomingMovies": len(movies), "usersChecked": len(users), "emailsSent": 0, "emailsFailed": 0}
    for user in users:
        relevant = find_relevant_movies(user, movies)
        if not relevant or not user.get("email"):
            continue
        try:
            text, body = render_email(user, relevant, actor_names)
            email_sender.send(user["email"], EMAIL_SUBJECT, text, body)
        except Exception:
            logger.exception("Notification email to %s failed", user["email"])
            summary["emailsFailed"] += 1
            continue
        summary["emailsSent"] += 1

    logger.info(
        "Upcoming movie check: %d movies, %d users, %d sent, %d failed",
        summary["upcomingMovies"], summary["usersChecked"], summary["emailsSent"], summary["emailsFailed"],
    )
    return summary
