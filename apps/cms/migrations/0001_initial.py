import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Site",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=120)),
                ("host", models.CharField(default="localhost", max_length=255)),
                ("locale", models.CharField(blank=True, default="", max_length=12)),
                ("is_default", models.BooleanField(default=False)),
                ("enabled", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ("name",),
            },
        ),
        migrations.CreateModel(
            name="Page",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("route_name", models.CharField(blank=True, db_index=True, default="", max_length=255)),
                ("slug", models.SlugField(blank=True, default="", max_length=255)),
                ("url", models.CharField(blank=True, default="", max_length=500)),
                ("template_code", models.CharField(blank=True, default="", max_length=64)),
                ("ttl", models.PositiveIntegerField(default=0)),
                ("decorate", models.BooleanField(default=True)),
                ("enabled", models.BooleanField(default=True)),
                ("login_required", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "site",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="pages",
                        to="cms.site",
                    ),
                ),
            ],
            options={
                "ordering": ("site", "url", "id"),
            },
        ),
        migrations.CreateModel(
            name="Block",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("type", models.CharField(db_index=True, max_length=64)),
                ("settings", models.JSONField(blank=True, default=dict)),
                ("position", models.PositiveIntegerField(default=1)),
                ("enabled", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "page",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="blocks",
                        to="cms.page",
                    ),
                ),
                (
                    "parent",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="children",
                        to="cms.block",
                    ),
                ),
            ],
            options={
                "ordering": ("page", "position", "id"),
                "indexes": [models.Index(fields=["page", "parent"], name="cms_block_page_parent_idx")],
            },
        ),
        migrations.AddConstraint(
            model_name="page",
            constraint=models.UniqueConstraint(
                condition=~models.Q(route_name="") & ~models.Q(route_name="page_slug"),
                fields=("site", "route_name"),
                name="unique_route_name_per_site",
            ),
        ),
        migrations.AddConstraint(
            model_name="page",
            constraint=models.UniqueConstraint(
                condition=~models.Q(slug=""),
                fields=("site", "slug"),
                name="unique_slug_per_site",
            ),
        ),
    ]
