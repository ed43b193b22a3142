"""Django signals for cache invalidation.

Cached cohort detail and stats responses are dropped whenever the cohort or
anything counted in its stats is saved or deleted.
"""

from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from cohorts.cache import invalidate_cohort
from cohorts.models import Attendance, Cohort, Enrollment, Session


@receiver([post_save, post_delete], sender=Cohort)
def invalidate_cohort_cache(sender, instance, **kwargs):
    """Invalidate caches when a cohort is saved or deleted."""
    invalidate_cohort(instance.pk)


@receiver([post_save, post_delete], sender=Session)
@receiver([post_save, post_delete], sender=Enrollment)
def invalidate_cohort_child_cache(sender, instance, **kwargs):
    """Invalidate the parent cohort when a session or enrollment changes."""
    invalidate_cohort(instance.cohort_id)


@receiver([post_save, post_delete], sender=Attendance)
def invalidate_attendance_cache(sender, instance, **kwargs):
    """Invalidate the cohort stats when attendance changes."""
    # The session may already be gone when the delete cascades from it.
    cohort_id = (
        Session.objects.filter(pk=instance.session_id).values_list("cohort_id", flat=True).first()
    )
    if cohort_id is not None:
        invalidate_cohort(cohort_id)
