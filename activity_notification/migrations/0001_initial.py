# Generated manually for activity notifications

import activity_notification.models
from activity_notification.conf import settings as notification_settings
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('contenttypes', '0002_remove_content_type_name'),
    ]

    operations = [
        migrations.CreateModel(
            name='Notification',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('target_object_id', models.CharField(db_index=True, max_length=255)),
                ('notifiable_object_id', models.CharField(db_index=True, max_length=255)),
                ('key', models.CharField(db_index=True, help_text="Notification key, e.g. 'comment.reply'", max_length=255)),
                ('group_object_id', models.CharField(blank=True, max_length=255, null=True)),
                ('notifier_object_id', models.CharField(blank=True, max_length=255, null=True)),
                ('parameters', models.JSONField(blank=True, default=dict)),
                ('opened_at', models.DateTimeField(blank=True, db_index=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('group_content_type', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='+', to='contenttypes.contenttype')),
                ('group_owner', models.ForeignKey(blank=True, help_text='Owner notification of the group this notification belongs to', null=True, on_delete=django.db.models.deletion.CASCADE, related_name='group_members', to='activity_notification.notification')),
                ('notifiable_content_type', models.ForeignKey(help_text='Type of the record the notification is about', on_delete=django.db.models.deletion.CASCADE, related_name='+', to='contenttypes.contenttype')),
                ('notifier_content_type', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='+', to='contenttypes.contenttype')),
                ('target_content_type', models.ForeignKey(help_text='Type of the notified target', on_delete=django.db.models.deletion.CASCADE, related_name='+', to='contenttypes.contenttype')),
            ],
            options={
                'db_table': notification_settings.NOTIFICATION_TABLE_NAME,
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['target_content_type', 'target_object_id', 'opened_at'], name='an_notification_target_idx'),
                    models.Index(fields=['notifiable_content_type', 'notifiable_object_id'], name='an_notification_notifiable_idx'),
                    models.Index(fields=['group_content_type', 'group_object_id'], name='an_notification_group_idx'),
                    models.Index(fields=['notifier_content_type', 'notifier_object_id'], name='an_notification_notifier_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Subscription',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('target_object_id', models.CharField(db_index=True, max_length=255)),
                ('key', models.CharField(db_index=True, max_length=255)),
                ('subscribing', models.BooleanField(default=activity_notification.models.subscribe_as_default)),
                ('subscribing_to_email', models.BooleanField(default=activity_notification.models.subscribe_to_email_as_default)),
                ('subscribed_at', models.DateTimeField(blank=True, null=True)),
                ('unsubscribed_at', models.DateTimeField(blank=True, null=True)),
                ('subscribed_to_email_at', models.DateTimeField(blank=True, null=True)),
                ('unsubscribed_to_email_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('target_content_type', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='+', to='contenttypes.contenttype')),
            ],
            options={
                'db_table': notification_settings.SUBSCRIPTION_TABLE_NAME,
                'ordering': ['-created_at', '-id'],
                'constraints': [
                    models.UniqueConstraint(fields=('target_content_type', 'target_object_id', 'key'), name='an_unique_target_subscription_key'),
                ],
            },
        ),
    ]
