import json

from rest_framework import serializers

from .gallery import Gallery, ImageAsset, is_consistent, resolve_display_asset
from .models import Product


class ImageAssetSerializer(serializers.Serializer):
    url = serializers.CharField(max_length=2048)
    is_primary = serializers.BooleanField(default=False)


class ProductSerializer(serializers.ModelSerializer):
    images = serializers.JSONField(required=False)
    display_image = serializers.SerializerMethodField()
    category_label = serializers.CharField(
        source="get_category_display",
        read_only=True
    )

    class Meta:
        model = Product
        fields = [
            "id",
            "title",
            "category",
            "category_label",
            "description",
            "materials",
            "sizing",
            "care_instructions",
            "for_him",
            "for_her",
            "price",
            "purchase_link",
            "is_active",
            "display_order",
            "images",
            "display_image",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]

    def validate_title(self, value):
        value = (value or "").strip()
        if not value:
            raise serializers.ValidationError("Title is required")
        return value

    def validate_price(self, value):
        if value is not None and value < 0:
            raise serializers.ValidationError("Price cannot be negative")
        return value

    def validate_images(self, value):
        if isinstance(value, str):
            value = value.strip()
            if value == "":
                return []
            try:
                value = json.loads(value)
            except json.JSONDecodeError as exc:
                raise serializers.ValidationError("Invalid images format") from exc

        if not isinstance(value, list):
            raise serializers.ValidationError("Images must be a list")

        rows = ImageAssetSerializer(data=value, many=True)
        if not rows.is_valid():
            raise serializers.ValidationError(rows.errors)

        gallery = Gallery(
            tuple(
                ImageAsset(row["url"].strip(), row["is_primary"])
                for row in rows.validated_data
            )
        )
        if not is_consistent(gallery):
            raise serializers.ValidationError("Exactly one image must be marked as primary")
        return gallery.to_records()

    def get_display_image(self, obj):
        asset = resolve_display_asset(obj.gallery)
        return asset.locator if asset else None

    def to_representation(self, instance):
        data = super().to_representation(instance)
        data["images"] = instance.gallery.to_records()
        return data


class ProductCardSerializer(serializers.ModelSerializer):
    display_image = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            "id",
            "title",
            "category",
            "price",
            "display_image",
        ]

    def get_display_image(self, obj):
        asset = resolve_display_asset(obj.gallery)
        return asset.locator if asset else None
