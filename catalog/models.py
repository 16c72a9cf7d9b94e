import uuid

from django.db import models

from .gallery import Gallery


class Product(models.Model):
    CATEGORY_CHOICES = [
        ("casual", "Casual"),
        ("classic", "Classic"),
        ("limited", "Limited"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    title = models.CharField(max_length=200)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES)
    description = models.TextField(max_length=500, blank=True)

    materials = models.TextField(blank=True)
    sizing = models.TextField(blank=True)
    care_instructions = models.TextField(blank=True)
    for_him = models.CharField(max_length=200, blank=True)
    for_her = models.CharField(max_length=200, blank=True)

    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True
    )
    purchase_link = models.URLField(blank=True)

    is_active = models.BooleanField(default=True)
    display_order = models.PositiveIntegerField(default=0)

    # ordered list of {"url": ..., "is_primary": ...}
    images = models.JSONField(default=list, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["display_order", "created_at"]
        indexes = [
            models.Index(fields=["is_active", "display_order"], name="catalog_active_order_idx"),
        ]

    @property
    def gallery(self):
        return Gallery.from_records(self.images)

    def set_gallery(self, gallery):
        self.images = gallery.to_records()

    def __str__(self):
        return self.title
