import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

import soa.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Statement",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("customer_name", models.CharField(max_length=255)),
                ("period", models.CharField(max_length=64)),
                ("file_name", models.CharField(max_length=255)),
                ("document", models.FileField(max_length=500, upload_to=soa.models.statement_upload_to)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("config", models.JSONField(default=dict)),
                ("user", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="statements",
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                "ordering": ["-created_at", "-id"],
            },
        ),
    ]
