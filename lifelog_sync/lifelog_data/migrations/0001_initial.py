from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies: list[tuple[str, str]] = []

    operations = [
        migrations.CreateModel(
            name="Lifelog",
            fields=[
                ("id", models.CharField(max_length=255, primary_key=True, serialize=False)),
                ("start_time", models.DateTimeField(db_index=True)),
                ("payload", models.TextField()),
            ],
            options={
                "ordering": ["-start_time", "-id"],
            },
        ),
        migrations.CreateModel(
            name="SyncState",
            fields=[
                (
                    "id",
                    models.PositiveSmallIntegerField(
                        default=1, primary_key=True, serialize=False
                    ),
                ),
                ("last_pull_time", models.DateTimeField(null=True)),
                ("last_cursor", models.TextField(null=True)),
                ("last_error", models.TextField(null=True)),
                ("last_error_time", models.DateTimeField(null=True)),
                ("version", models.PositiveIntegerField(default=0)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Sync State",
                "verbose_name_plural": "Sync State",
            },
        ),
    ]
