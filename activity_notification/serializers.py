"""
Serializers for the notification API.
"""
from rest_framework import serializers

from .models import Notification, Subscription
from .utils import as_polymorphic_json


def _content_type_name(content_type):
    if content_type is None:
        return None
    return f"{content_type.app_label}.{content_type.model}"


class NotificationBaseSerializer(serializers.ModelSerializer):
    """Notification fields shared by group owners and group members"""
    target_id = serializers.CharField(source='target_object_id', read_only=True)
    notifiable_id = serializers.CharField(source='notifiable_object_id', read_only=True)
    group_id = serializers.CharField(source='group_object_id', read_only=True)
    notifier_id = serializers.CharField(source='notifier_object_id', read_only=True)
    target_type = serializers.SerializerMethodField()
    target = serializers.SerializerMethodField()
    notifiable_type = serializers.SerializerMethodField()
    notifiable = serializers.SerializerMethodField()
    group_type = serializers.SerializerMethodField()
    group = serializers.SerializerMethodField()
    notifier_type = serializers.SerializerMethodField()
    notifier = serializers.SerializerMethodField()
    opened = serializers.BooleanField(read_only=True)
    notifiable_path = serializers.SerializerMethodField()
    printable_notifiable_name = serializers.SerializerMethodField()
    group_member_notifier_count = serializers.SerializerMethodField()
    group_notification_count = serializers.SerializerMethodField()

    class Meta:
        model = Notification
        fields = [
            'id', 'target_id', 'target_type', 'target',
            'notifiable_id', 'notifiable_type', 'notifiable',
            'key', 'group_id', 'group_type', 'group', 'group_owner_id',
            'notifier_id', 'notifier_type', 'notifier',
            'parameters', 'opened', 'opened_at', 'created_at', 'updated_at',
            'notifiable_path', 'printable_notifiable_name',
            'group_member_notifier_count', 'group_notification_count',
        ]
        read_only_fields = fields

    def get_target_type(self, obj):
        return _content_type_name(obj.target_content_type)

    def get_target(self, obj):
        return as_polymorphic_json(obj.target)

    def get_notifiable_type(self, obj):
        return _content_type_name(obj.notifiable_content_type)

    def get_notifiable(self, obj):
        return as_polymorphic_json(obj.notifiable)

    def get_group_type(self, obj):
        return _content_type_name(obj.group_content_type)

    def get_group(self, obj):
        return as_polymorphic_json(obj.group)

    def get_notifier_type(self, obj):
        return _content_type_name(obj.notifier_content_type)

    def get_notifier(self, obj):
        return as_polymorphic_json(obj.notifier)

    def get_notifiable_path(self, obj):
        return obj.notifiable_path()

    def get_printable_notifiable_name(self, obj):
        return obj.printable_notifiable_name()

    def get_group_member_notifier_count(self, obj):
        return obj.group_member_notifier_count()

    def get_group_notification_count(self, obj):
        return obj.group_notification_count()


class NotificationSerializer(NotificationBaseSerializer):
    """Serializer for notifications with their group members"""
    group_members = serializers.SerializerMethodField()

    class Meta(NotificationBaseSerializer.Meta):
        fields = NotificationBaseSerializer.Meta.fields + ['group_members']
        read_only_fields = fields

    def get_group_members(self, obj):
        members = obj.group_members.latest_order()
        return NotificationBaseSerializer(members, many=True, context=self.context).data


class SubscriptionSerializer(serializers.ModelSerializer):
    """Serializer for subscriptions"""
    target_id = serializers.CharField(source='target_object_id', read_only=True)
    target_type = serializers.SerializerMethodField()
    target = serializers.SerializerMethodField()

    class Meta:
        model = Subscription
        fields = [
            'id', 'target_id', 'target_type', 'target', 'key',
            'subscribing', 'subscribing_to_email',
            'subscribed_at', 'unsubscribed_at',
            'subscribed_to_email_at', 'unsubscribed_to_email_at',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_target_type(self, obj):
        return _content_type_name(obj.target_content_type)

    def get_target(self, obj):
        return as_polymorphic_json(obj.target)


class SubscriptionCreateSerializer(serializers.Serializer):
    """Parameters accepted when a target creates a subscription"""
    key = serializers.CharField(max_length=255)
    subscribing = serializers.BooleanField(required=False)
    subscribing_to_email = serializers.BooleanField(required=False)

    def validate(self, attrs):
        if attrs.get('subscribing') is False and attrs.get('subscribing_to_email') is True:
            raise serializers.ValidationError({
                'subscribing_to_email': "Cannot subscribe to email without subscribing to the notification"
            })
        return attrs


class NotificationIndexOptionsSerializer(serializers.Serializer):
    """Query parameters of the notification index and bulk operations"""
    FILTER_CHOICES = ['auto', 'opened', 'unopened']

    filter = serializers.ChoiceField(choices=FILTER_CHOICES, required=False)
    limit = serializers.IntegerField(min_value=0, required=False)
    reverse = serializers.BooleanField(required=False)
    with_group_members = serializers.BooleanField(required=False)
    without_grouping = serializers.BooleanField(required=False)
    filtered_by_type = serializers.CharField(required=False)
    filtered_by_group_type = serializers.CharField(required=False)
    filtered_by_group_id = serializers.CharField(required=False)
    filtered_by_key = serializers.CharField(required=False)
    later_than = serializers.CharField(required=False)
    earlier_than = serializers.CharField(required=False)
    ids = serializers.ListField(child=serializers.IntegerField(), required=False)

    def to_options(self):
        """Validated options in the form accepted by ``Target`` index methods."""
        options = {name: value for name, value in self.validated_data.items() if value is not None}
        if options.pop('without_grouping', False):
            options['with_group_members'] = True
        return options


class SubscriptionIndexOptionsSerializer(serializers.Serializer):
    """Query parameters of the subscription index"""
    FILTER_CHOICES = ['configured', 'unconfigured']

    filter = serializers.ChoiceField(choices=FILTER_CHOICES, required=False)
    limit = serializers.IntegerField(min_value=0, required=False)
    reverse = serializers.BooleanField(required=False)
    filtered_by_key = serializers.CharField(required=False)

    def to_options(self):
        options = {name: value for name, value in self.validated_data.items() if value is not None}
        return options
