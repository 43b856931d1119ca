"""Default mentor trust score, used when no externally computed rating is supplied."""
import logging

from .models import User

logger = logging.getLogger(__name__)

BASE_RATING = 1.0
MAX_RATING = 5.0


def heuristic_rating(linkedin_url=None, github_url=None, cv_url=None):
    score = BASE_RATING
    if linkedin_url and "linkedin.com" in linkedin_url:
        score += 1.5
    if github_url and "github.com" in github_url:
        score += 1.5
    if cv_url:
        score += 1.0
    return min(MAX_RATING, score)


def submit_verification(mentor, linkedin_url=None, github_url=None, cv_url=None, rating=None):
    """Store a mentor's profile links and the resulting system rating."""
    if rating:
        system_rating = min(MAX_RATING, float(rating))
    else:
        system_rating = heuristic_rating(linkedin_url, github_url, cv_url)

    User.objects.filter(pk=mentor.pk).update(
        linkedin_url=linkedin_url or None,
        github_url=github_url or None,
        cv_url=cv_url or None,
        system_rating=system_rating,
    )
    mentor.refresh_from_db()
    logger.info("Mentor %s system rating set to %.1f", mentor.pk, system_rating)
    return system_rating
