from django.contrib import admin

from cohorts.models import Attendance, Cohort, Enrollment, Session, Workshop


class SessionInline(admin.TabularInline):
    model = Session
    extra = 0
    fields = ["session_number", "title", "starts_at", "ends_at", "status"]


class EnrollmentInline(admin.TabularInline):
    model = Enrollment
    extra = 0
    fields = ["customer_name", "customer_email", "status", "waitlist_position"]


@admin.register(Workshop)
class WorkshopAdmin(admin.ModelAdmin):
    list_display = ["title", "type", "created_at"]
    search_fields = ["title"]


@admin.register(Cohort)
class CohortAdmin(admin.ModelAdmin):
    list_display = ["title", "workshop", "status", "start_at", "enrolled_count", "capacity"]
    list_filter = ["status", "delivery_mode", "workshop"]
    search_fields = ["title", "slug"]
    readonly_fields = ["enrolled_count", "waitlist_count", "published_at", "completed_at", "cancelled_at"]
    inlines = [SessionInline, EnrollmentInline]


@admin.register(Session)
class SessionAdmin(admin.ModelAdmin):
    list_display = ["cohort", "session_number", "title", "starts_at", "status"]
    list_filter = ["status", "cohort"]


@admin.register(Enrollment)
class EnrollmentAdmin(admin.ModelAdmin):
    list_display = ["customer_name", "customer_email", "cohort", "status", "enrolled_at"]
    list_filter = ["status", "cohort"]
    search_fields = ["customer_name", "customer_email"]


@admin.register(Attendance)
class AttendanceAdmin(admin.ModelAdmin):
    list_display = ["enrollment", "session", "status", "checked_in_at"]
    list_filter = ["status", "session__cohort"]
