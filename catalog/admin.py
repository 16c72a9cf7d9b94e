from django.contrib import admin
from django.utils.html import format_html

from .gallery import is_consistent, normalize, resolve_display_asset
from .models import Product


# ========================
# ADMIN BRANDING
# ========================
admin.site.site_header = "Catalog – Internal Admin"
admin.site.site_title = "Catalog Admin"
admin.site.index_title = "Collections Control Panel"


# ========================
# PRODUCT ADMIN
# ========================
@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):

    # ---- VISUAL HELPERS ----
    def image_preview(self, obj):
        asset = resolve_display_asset(obj.gallery)
        if asset:
            return format_html(
                '<img src="{}" style="width:60px;height:60px;object-fit:cover;border-radius:6px;" />',
                asset.locator
            )
        return "—"
    image_preview.short_description = "Image"

    def image_count(self, obj):
        return len(obj.gallery)
    image_count.short_description = "Images"

    def gallery_badge(self, obj):
        if is_consistent(obj.gallery):
            return format_html('<span style="color:{};">{}</span>', "#16a34a", "OK")
        return format_html('<b style="color:{};">{}</b>', "#ef4444", "NO PRIMARY")
    gallery_badge.short_description = "Gallery"

    def status_badge(self, obj):
        if obj.is_active:
            return format_html('<span style="color:{};">{}</span>', "#16a34a", "Active")
        return format_html('<span style="color:{};">{}</span>', "#dc2626", "Inactive")
    status_badge.short_description = "Status"

    def save_model(self, request, obj, form, change):
        obj.set_gallery(normalize(obj.gallery))
        super().save_model(request, obj, form, change)

    readonly_fields = ("id", "created_at", "updated_at")

    # ---- LIST VIEW ----
    list_display = (
        "image_preview",
        "title",
        "category",
        "price",
        "display_order",
        "image_count",
        "gallery_badge",
        "status_badge",
    )

    list_editable = ("display_order",)

    list_filter = (
        "is_active",
        "category",
    )

    search_fields = ("title",)
    ordering = ("display_order", "created_at")

    # ---- FORM VIEW ----
    fieldsets = (
        ("Basic Info", {
            "fields": (
                "title",
                "category",
                "price",
                "purchase_link",
            )
        }),
        ("Description", {
            "fields": (
                "description",
                "for_him",
                "for_her",
                "materials",
                "sizing",
                "care_instructions",
            )
        }),
        ("Gallery", {
            "fields": ("images",)
        }),
        ("Visibility", {
            "fields": (
                "is_active",
                "display_order",
            )
        }),
        ("System Info", {
            "fields": ("id", "created_at", "updated_at")
        }),
    )
