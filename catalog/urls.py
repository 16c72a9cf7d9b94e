from django.urls import path

from . import views

app_name = "catalog"

urlpatterns = [
    # products
    path("products/", views.product_list, name="products"),
    path("products/inactive/", views.inactive_product_list, name="products-inactive"),
    path("products/<uuid:id>/", views.product_detail, name="product-detail"),

    # gallery viewer
    path("products/<uuid:id>/gallery/", views.product_gallery, name="product-gallery"),

    # gallery editing
    path("uploads/", views.upload_image, name="upload-image"),
    path("products/<uuid:id>/images/", views.product_image_add, name="product-image-add"),
    path("products/<uuid:id>/images/<int:index>/", views.product_image_remove, name="product-image-remove"),
    path("products/<uuid:id>/images/<int:index>/primary/", views.product_image_primary, name="product-image-primary"),
    path("products/<uuid:id>/images/<int:index>/move/", views.product_image_move, name="product-image-move"),
]
