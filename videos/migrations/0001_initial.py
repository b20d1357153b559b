import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Video",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("title", models.CharField(max_length=255)),
                ("type", models.CharField(blank=True, default="", max_length=128)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("QUEUEING", "Queueing"),
                            ("CONVERTING", "Converting"),
                            ("CONVERTED", "Converted"),
                            ("TRANSCRIBING", "Transcribing"),
                            ("TRANSCRIBED", "Transcribed"),
                            ("FAILED", "Failed"),
                        ],
                        default="QUEUEING",
                        max_length=16,
                    ),
                ),
                ("url", models.CharField(blank=True, default="", max_length=1024)),
                ("text", models.TextField(blank=True, default="")),
                ("error", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
    ]
