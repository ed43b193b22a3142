"""Cache keys for cohort responses and their invalidation.

Keys are built from the canonical UUID string, the same form the signal
handlers pass in, so every URL spelling of an id shares one entry.
"""

import logging

from django.conf import settings
from django.core.cache import cache

logger = logging.getLogger(__name__)


def cohort_key(cohort_id) -> str:
    return f"cohorts:{cohort_id}"


def stats_key(cohort_id) -> str:
    return f"cohorts:{cohort_id}:stats"


def ttl() -> int:
    return getattr(settings, "COHORT_CACHE_TTL", 300)


def invalidate_cohort(cohort_id) -> None:
    """Drop every cached response derived from the cohort."""
    cache.delete_many([cohort_key(cohort_id), stats_key(cohort_id)])
    logger.debug("Cohort cache invalidated", extra={"cohort_id": str(cohort_id)})
