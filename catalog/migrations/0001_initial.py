from django.db import migrations, models
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("title", models.CharField(max_length=200)),
                ("category", models.CharField(choices=[("casual", "Casual"), ("classic", "Classic"), ("limited", "Limited")], max_length=20)),
                ("description", models.TextField(blank=True, max_length=500)),
                ("materials", models.TextField(blank=True)),
                ("sizing", models.TextField(blank=True)),
                ("care_instructions", models.TextField(blank=True)),
                ("for_him", models.CharField(blank=True, max_length=200)),
                ("for_her", models.CharField(blank=True, max_length=200)),
                ("price", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("purchase_link", models.URLField(blank=True)),
                ("is_active", models.BooleanField(default=True)),
                ("display_order", models.PositiveIntegerField(default=0)),
                ("images", models.JSONField(blank=True, default=list)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["display_order", "created_at"],
                "indexes": [models.Index(fields=["is_active", "display_order"], name="catalog_active_order_idx")],
            },
        ),
    ]
