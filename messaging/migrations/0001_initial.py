"""
Initial migration for the messaging app.

Defines the Message model with the constraint that a message targets
exactly one user (direct) or one group (group), plus the indexes used to
read direct and group threads.
"""
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("groups", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Message",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("content", models.TextField()),
                ("message_type", models.CharField(
                    choices=[("direct", "Direct"), ("group", "Group")],
                    max_length=10,
                )),
                ("is_read", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("sender", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="sent_messages",
                    to=settings.AUTH_USER_MODEL,
                )),
                ("recipient", models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="received_messages",
                    to=settings.AUTH_USER_MODEL,
                )),
                ("group", models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="messages",
                    to="groups.group",
                )),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["sender", "recipient", "created_at"], name="msg_direct_thread_idx"),
                    models.Index(fields=["group", "created_at"], name="msg_group_thread_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=(
                            models.Q(message_type="direct", recipient__isnull=False, group__isnull=True)
                            | models.Q(message_type="group", recipient__isnull=True, group__isnull=False)
                        ),
                        name="message_single_target",
                    ),
                ],
            },
        ),
    ]
