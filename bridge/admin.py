from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.contrib.auth.models import Group
from .models import User, Swipe, Connection, Message
from .rooms import room_id


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ("id", "name", "email", "role", "is_verified", "rating", "system_rating")
    list_filter = ("role", "is_verified")
    search_fields = ("name", "email", "branch")
    ordering = ("id",)
    list_per_page = 25

    fieldsets = BaseUserAdmin.fieldsets + (
        ("Mentor bridge", {"fields": ("name", "role", "is_verified", "branch", "bio", "skills", "profile_pic")}),
        ("Rating", {"fields": ("rating", "system_rating", "linkedin_url", "github_url", "cv_url")}),
    )
    readonly_fields = ("role",)


@admin.register(Swipe)
class SwipeAdmin(admin.ModelAdmin):
    list_display = ("student", "mentor", "direction", "timestamp")
    list_filter = ("direction",)
    search_fields = ("student__name", "mentor__name")
    ordering = ("-timestamp",)


@admin.register(Connection)
class ConnectionAdmin(admin.ModelAdmin):
    list_display = ("id", "student", "mentor", "status", "created_at", "responded_at", "room")
    list_filter = ("status",)
    search_fields = ("student__name", "mentor__name")
    ordering = ("-created_at",)
    readonly_fields = ("status", "responded_at")  # only the connection engine moves status

    def room(self, obj):
        return room_id(obj.student_id, obj.mentor_id) if obj.status == Connection.ACCEPTED else ""
    room.short_description = "Room"


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ("room_id", "sender", "type", "text", "timestamp")
    list_filter = ("type",)
    search_fields = ("room_id", "text", "sender__name")
    ordering = ("room_id", "timestamp", "id")
    list_per_page = 50

    def has_change_permission(self, request, obj=None):
        return False


admin.site.unregister(Group)
