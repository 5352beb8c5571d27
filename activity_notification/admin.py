"""Activity notification admin configuration."""

from django.contrib import admin
from django.utils import timezone

from .models import Notification, Subscription


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    """Admin for notifications."""

    list_display = [
        "id", "key", "target_content_type", "target_object_id",
        "notifiable_content_type", "notifiable_object_id",
        "group_owner", "is_opened", "created_at"
    ]
    list_filter = ["key", "target_content_type", "notifiable_content_type", "opened_at", "created_at"]
    search_fields = ["key", "target_object_id", "notifiable_object_id", "notifier_object_id"]
    readonly_fields = ["created_at", "updated_at"]
    raw_id_fields = ["group_owner"]
    date_hierarchy = "created_at"
    actions = ["open_notifications"]

    fieldsets = [
        ("Notification", {
            "fields": ["key", "parameters", "opened_at"]
        }),
        ("Target", {
            "fields": ["target_content_type", "target_object_id"]
        }),
        ("Notifiable", {
            "fields": ["notifiable_content_type", "notifiable_object_id"]
        }),
        ("Group", {
            "fields": ["group_content_type", "group_object_id", "group_owner"]
        }),
        ("Notifier", {
            "fields": ["notifier_content_type", "notifier_object_id"]
        }),
        ("Timestamps", {
            "fields": ["created_at", "updated_at"]
        }),
    ]

    def get_queryset(self, request):
        """Optimize queryset."""
        return super().get_queryset(request).select_related(
            "target_content_type", "notifiable_content_type", "group_owner"
        )

    @admin.display(boolean=True, description="Opened")
    def is_opened(self, obj):
        return obj.opened

    @admin.action(description="Open selected notifications")
    def open_notifications(self, request, queryset):
        count = queryset.unopened_only().open_all(timezone.now())
        self.message_user(request, f"{count} notifications opened.")


@admin.register(Subscription)
class SubscriptionAdmin(admin.ModelAdmin):
    """Admin for subscriptions."""

    list_display = [
        "id", "key", "target_content_type", "target_object_id",
        "subscribing", "subscribing_to_email", "updated_at"
    ]
    list_filter = ["subscribing", "subscribing_to_email", "target_content_type"]
    search_fields = ["key", "target_object_id"]
    readonly_fields = [
        "subscribed_at", "unsubscribed_at", "subscribed_to_email_at",
        "unsubscribed_to_email_at", "created_at", "updated_at"
    ]
