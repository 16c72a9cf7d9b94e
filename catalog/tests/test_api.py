from unittest import mock

from django.contrib.auth.models import User
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase
from rest_framework.test import APIClient

from catalog.exceptions import StoreError
from catalog.gallery import is_consistent
from catalog.models import Product

from .factories import image_bytes, make_product


def jpeg_upload(name="photo.jpg", size=(300, 200)):
    return SimpleUploadedFile(name, image_bytes(size), content_type="image/jpeg")


class CatalogApiTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.staff = User.objects.create_user(
            username="admin-user",
            password="pass12345",
            is_staff=True,
        )
        self.curator = User.objects.create_user(username="curator", password="pass12345")
        self.shopper = User.objects.create_user(username="shopper", password="pass12345")


class ProductApiTests(CatalogApiTestCase):
    def test_public_list_returns_active_cards_in_display_order(self):
        second = make_product(
            title="Second",
            display_order=2,
            images=[
                {"url": "https://cdn/x.jpg", "is_primary": False},
                {"url": "https://cdn/y.jpg", "is_primary": True},
            ],
        )
        first = make_product(title="First", display_order=1)
        make_product(title="Hidden", display_order=0, is_active=False)

        response = self.client.get("/api/products/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual([item["id"] for item in response.data], [str(first.id), str(second.id)])
        self.assertIsNone(response.data[0]["display_image"])
        self.assertEqual(response.data[1]["display_image"], "https://cdn/y.jpg")

    def test_public_list_filters_by_category(self):
        make_product(title="Casual")
        limited = make_product(title="Limited", category="limited")

        response = self.client.get("/api/products/?category=limited")

        self.assertEqual([item["id"] for item in response.data], [str(limited.id)])

    def test_editor_list_includes_inactive_products(self):
        make_product(title="Hidden", is_active=False)
        self.client.force_login(self.staff)

        response = self.client.get("/api/products/")

        self.assertEqual(len(response.data), 1)
        self.assertFalse(response.data[0]["is_active"])
        self.assertIn("images", response.data[0])

    def test_create_requires_editor(self):
        payload = {"title": "Classic Duo", "category": "classic"}

        self.assertEqual(self.client.post("/api/products/", payload, format="json").status_code, 401)

        self.client.force_login(self.shopper)
        self.assertEqual(self.client.post("/api/products/", payload, format="json").status_code, 403)
        self.assertEqual(Product.objects.count(), 0)

    def test_create_starts_with_empty_gallery(self):
        self.client.force_login(self.curator)

        response = self.client.post(
            "/api/products/",
            {
                "title": "Classic Duo",
                "category": "classic",
                "price": "350000.00",
                "images": [{"url": "https://cdn/a.jpg", "is_primary": True}],
            },
            format="json",
        )

        self.assertEqual(response.status_code, 201)
        product = Product.objects.get()
        self.assertEqual(product.images, [])
        self.assertEqual(response.data["data"]["id"], str(product.id))

    def test_create_rejects_unknown_category(self):
        self.client.force_login(self.staff)

        response = self.client.post(
            "/api/products/", {"title": "Odd", "category": "formal"}, format="json"
        )

        self.assertEqual(response.status_code, 400)
        self.assertIn("category", response.data)

    def test_inactive_product_hidden_from_public(self):
        product = make_product(is_active=False)

        self.assertEqual(self.client.get(f"/api/products/{product.id}/").status_code, 404)

        self.client.force_login(self.staff)
        self.assertEqual(self.client.get(f"/api/products/{product.id}/").status_code, 200)

    def test_update_validates_gallery(self):
        product = make_product()
        self.client.force_login(self.staff)

        response = self.client.put(
            f"/api/products/{product.id}/",
            {
                "images": [
                    {"url": "https://cdn/a.jpg", "is_primary": True},
                    {"url": "https://cdn/b.jpg", "is_primary": True},
                ]
            },
            format="json",
        )
        self.assertEqual(response.status_code, 400)

        response = self.client.put(
            f"/api/products/{product.id}/",
            {
                "title": "Casual Harmony II",
                "images": [
                    {"url": "https://cdn/a.jpg", "is_primary": False},
                    {"url": "https://cdn/b.jpg", "is_primary": True},
                ],
            },
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        product.refresh_from_db()
        self.assertEqual(product.title, "Casual Harmony II")
        self.assertEqual(product.gallery.primary_index, 1)
        self.assertEqual(response.data["data"]["display_image"], "https://cdn/b.jpg")

    def test_delete_removes_record(self):
        product = make_product(images=[{"url": "https://cdn/a.jpg", "is_primary": True}])
        self.client.force_login(self.staff)

        response = self.client.delete(f"/api/products/{product.id}/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["orphaned_images"], ["https://cdn/a.jpg"])
        self.assertFalse(Product.objects.exists())
        self.assertEqual(self.client.get(f"/api/products/{product.id}/").status_code, 404)

    def test_inactive_list_is_editor_only(self):
        make_product(is_active=False)

        self.assertEqual(self.client.get("/api/products/inactive/").status_code, 401)

        self.client.force_login(self.curator)
        response = self.client.get("/api/products/inactive/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data), 1)


class UploadApiTests(CatalogApiTestCase):
    def setUp(self):
        super().setUp()
        self.client.force_login(self.staff)

    def test_upload_returns_locator(self):
        response = self.client.post("/api/uploads/", {"file": jpeg_upload()}, format="multipart")

        self.assertEqual(response.status_code, 201)
        self.assertTrue(response.data["url"].startswith("/media/products/"))
        self.assertTrue(response.data["url"].endswith(".jpg"))

    def test_upload_requires_editor(self):
        self.client.force_login(self.shopper)

        response = self.client.post("/api/uploads/", {"file": jpeg_upload()}, format="multipart")

        self.assertEqual(response.status_code, 403)

    def test_upload_rejects_non_images(self):
        pdf = SimpleUploadedFile("doc.pdf", b"%PDF-1.4", content_type="application/pdf")

        response = self.client.post("/api/uploads/", {"file": pdf}, format="multipart")

        self.assertEqual(response.status_code, 415)

    def test_upload_rejects_corrupt_images(self):
        broken = SimpleUploadedFile("broken.jpg", b"not really a jpeg", content_type="image/jpeg")

        response = self.client.post("/api/uploads/", {"file": broken}, format="multipart")

        self.assertEqual(response.status_code, 400)

    def test_upload_without_file(self):
        response = self.client.post("/api/uploads/", {}, format="multipart")

        self.assertEqual(response.status_code, 400)

    def test_store_failure_asks_user_to_retry(self):
        with mock.patch("catalog.storage.AssetStore.store", side_effect=StoreError("timeout")):
            response = self.client.post("/api/uploads/", {"file": jpeg_upload()}, format="multipart")

        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.data["detail"], "Upload failed, try again")


class GalleryEditingApiTests(CatalogApiTestCase):
    def setUp(self):
        super().setUp()
        self.client.force_login(self.staff)
        self.product = make_product(
            images=[
                {"url": "A", "is_primary": True},
                {"url": "B", "is_primary": False},
                {"url": "C", "is_primary": False},
            ]
        )
        self.base = f"/api/products/{self.product.id}/images/"

    def test_uploads_append_to_stored_gallery(self):
        empty = make_product(title="Empty")
        url = f"/api/products/{empty.id}/images/"

        first = self.client.post(url, {"file": jpeg_upload("one.jpg")}, format="multipart")
        second = self.client.post(url, {"file": jpeg_upload("two.jpg")}, format="multipart")

        self.assertEqual(first.status_code, 201)
        self.assertEqual(second.status_code, 201)
        empty.refresh_from_db()
        self.assertEqual(empty.gallery.locators, [first.data["url"], second.data["url"]])
        self.assertEqual(empty.gallery.primary_index, 0)

    def test_upload_repairs_gallery_without_primary(self):
        legacy = make_product(title="Legacy", images=[{"url": "A", "is_primary": False}])

        with mock.patch("catalog.views.ingest_image", return_value="B"):
            response = self.client.post(
                f"/api/products/{legacy.id}/images/",
                {"file": jpeg_upload()},
                format="multipart",
            )

        self.assertEqual(response.status_code, 201)
        legacy.refresh_from_db()
        self.assertEqual(legacy.gallery.locators, ["A", "B"])
        self.assertTrue(is_consistent(legacy.gallery))
        self.assertEqual(legacy.gallery.primary_index, 0)

    def test_remove_and_move_repair_gallery_without_primary(self):
        legacy = make_product(
            title="Legacy",
            images=[
                {"url": "A", "is_primary": False},
                {"url": "B", "is_primary": False},
                {"url": "C", "is_primary": False},
            ],
        )
        base = f"/api/products/{legacy.id}/images/"

        removed = self.client.delete(f"{base}2/")
        moved = self.client.post(f"{base}0/move/", {"to": 1}, format="json")

        self.assertEqual(removed.status_code, 200)
        self.assertEqual(moved.status_code, 200)
        legacy.refresh_from_db()
        self.assertEqual(legacy.gallery.locators, ["B", "A"])
        self.assertTrue(is_consistent(legacy.gallery))
        self.assertEqual(legacy.gallery.primary_index, 1)

    def test_upload_to_missing_product(self):
        response = self.client.post(
            "/api/products/00000000-0000-0000-0000-000000000000/images/",
            {"file": jpeg_upload()},
            format="multipart",
        )

        self.assertEqual(response.status_code, 404)

    def test_remove_primary_promotes_next(self):
        response = self.client.delete(f"{self.base}0/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.data["images"],
            [{"url": "B", "is_primary": True}, {"url": "C", "is_primary": False}],
        )

    def test_set_primary(self):
        response = self.client.post(f"{self.base}2/primary/")

        self.assertEqual(response.status_code, 200)
        self.product.refresh_from_db()
        self.assertEqual(self.product.gallery.primary_index, 2)

    def test_move(self):
        response = self.client.post(f"{self.base}0/move/", {"to": 2}, format="json")

        self.assertEqual(response.status_code, 200)
        self.product.refresh_from_db()
        self.assertEqual(self.product.gallery.locators, ["B", "C", "A"])
        self.assertEqual(self.product.gallery.primary_index, 2)

    def test_move_requires_target(self):
        response = self.client.post(f"{self.base}0/move/", {}, format="json")

        self.assertEqual(response.status_code, 400)

    def test_invalid_index_leaves_gallery_alone(self):
        response = self.client.delete(f"{self.base}9/")

        self.assertEqual(response.status_code, 400)
        self.product.refresh_from_db()
        self.assertEqual(self.product.gallery.locators, ["A", "B", "C"])

    def test_editing_requires_editor(self):
        self.client.force_login(self.shopper)

        self.assertEqual(self.client.delete(f"{self.base}0/").status_code, 403)
        self.assertEqual(self.client.post(f"{self.base}1/primary/").status_code, 403)


class GalleryViewerApiTests(CatalogApiTestCase):
    def test_viewer_frame_starts_on_primary(self):
        product = make_product(
            images=[
                {"url": "https://cdn/a.jpg", "is_primary": False},
                {"url": "https://cdn/b.jpg", "is_primary": True},
            ]
        )

        response = self.client.get(f"/api/products/{product.id}/gallery/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["image"], "https://cdn/b.jpg")
        self.assertEqual([t["selected"] for t in response.data["thumbnails"]], [False, True])

    def test_viewer_frame_with_selection(self):
        product = make_product(
            images=[
                {"url": "https://cdn/a.jpg", "is_primary": True},
                {"url": "https://cdn/b.jpg", "is_primary": False},
            ]
        )

        response = self.client.get(f"/api/products/{product.id}/gallery/?selected=1")

        self.assertEqual(response.data["image"], "https://cdn/b.jpg")
        self.assertEqual(
            self.client.get(f"/api/products/{product.id}/gallery/?selected=5").status_code, 400
        )

    def test_empty_gallery_gets_placeholder(self):
        product = make_product(title="Classic Duo")

        response = self.client.get(f"/api/products/{product.id}/gallery/")

        self.assertIsNone(response.data["image"])
        self.assertEqual(response.data["placeholder"]["label"], "Classic Duo")
