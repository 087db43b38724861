from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ("username", "email", "role", "is_verified", "is_active", "date_joined")
    list_filter = ("role", "is_verified", "is_active")
    search_fields = ("username", "email", "badge_number")
    ordering = ("-date_joined",)
    actions = ("verify_police_accounts",)

    fieldsets = BaseUserAdmin.fieldsets + (
        ("Crime reporting", {"fields": ("role", "is_verified", "phone", "badge_number", "department")}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ("Crime reporting", {"fields": ("email", "role", "phone", "badge_number", "department")}),
    )

    @admin.action(description="Verify selected police accounts")
    def verify_police_accounts(self, request, queryset):
        updated = queryset.filter(role="police", is_verified=False).update(is_verified=True)
        self.message_user(request, f"{updated} police account(s) verified.")
