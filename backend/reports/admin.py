from django.contrib import admin

from .models import PoliceNote, Report


class PoliceNoteInline(admin.TabularInline):
    model = PoliceNote
    extra = 0
    readonly_fields = ("officer", "note", "created_at")


@admin.register(Report)
class ReportAdmin(admin.ModelAdmin):
    list_display = ("id", "title", "category", "severity", "status",
                    "fir_status", "verification_status", "created_at")
    list_filter = ("status", "category", "severity", "fir_status",
                   "verification_status", "is_anonymous")
    search_fields = ("title", "description", "address", "city", "fir_number")
    raw_id_fields = ("reporter", "assigned_officer", "fir_approved_by", "verified_by")
    inlines = [PoliceNoteInline]


@admin.register(PoliceNote)
class PoliceNoteAdmin(admin.ModelAdmin):
    list_display = ("report", "officer", "created_at")
