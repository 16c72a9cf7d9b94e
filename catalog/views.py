import logging

from django.conf import settings
from rest_framework import status
from rest_framework.decorators import api_view, parser_classes, permission_classes
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from .exceptions import (
    DecodeError,
    IndexOutOfRangeError,
    PersistenceError,
    ProductNotFound,
    StoreError,
    UnsupportedMediaError,
)
from .gallery import EMPTY_GALLERY, add_asset, move_asset, normalize, remove_asset, set_primary
from .gateway import CatalogGateway
from .models import Product
from .pipeline import ingest_image
from .serializers import ProductCardSerializer, ProductSerializer
from .viewer import GalleryViewer

logger = logging.getLogger(__name__)

gateway = CatalogGateway()


def _is_editor(request):
    user = request.user
    if not user.is_authenticated:
        return False
    allowed_usernames = set(getattr(settings, "CATALOG_EDITOR_USERNAMES", []))
    return bool(
        user.is_staff
        or user.is_superuser
        or user.username in allowed_usernames
    )


def _ensure_editor(request):
    if not request.user.is_authenticated:
        return Response(
            {"detail": "Authentication required"},
            status=status.HTTP_401_UNAUTHORIZED
        )
    if not _is_editor(request):
        return Response(
            {"detail": "Catalog editor access required"},
            status=status.HTTP_403_FORBIDDEN
        )
    return None


def _error_response(exc):
    if isinstance(exc, UnsupportedMediaError):
        return Response({"detail": str(exc)}, status=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE)
    if isinstance(exc, DecodeError):
        return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, StoreError):
        return Response(
            {"detail": "Upload failed, try again"},
            status=status.HTTP_502_BAD_GATEWAY
        )
    if isinstance(exc, IndexOutOfRangeError):
        return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, ProductNotFound):
        return Response({"detail": "Product not found"}, status=status.HTTP_404_NOT_FOUND)
    return Response({"detail": str(exc)}, status=status.HTTP_503_SERVICE_UNAVAILABLE)


def _read_upload(request):
    upload = request.FILES.get("file") or request.FILES.get("image")
    if upload is None:
        return None, Response(
            {"detail": "No file uploaded"},
            status=status.HTTP_400_BAD_REQUEST
        )
    max_bytes = getattr(settings, "GALLERY_MAX_UPLOAD_BYTES", None)
    if max_bytes and upload.size > max_bytes:
        return None, Response(
            {"detail": "File too large"},
            status=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
        )
    return upload, None


def _store_upload(upload):
    return ingest_image(upload.read(), upload.content_type or "")


# PRODUCT APIs

@api_view(["GET", "POST"])
@permission_classes([AllowAny])
def product_list(request):

    # PUBLIC
    if request.method == "GET":
        category = request.query_params.get("category")
        try:
            if _is_editor(request):
                products = gateway.list(category=category)
                serializer = ProductSerializer(products, many=True)
            else:
                products = gateway.list(is_active=True, category=category)
                serializer = ProductCardSerializer(products, many=True)
        except PersistenceError as exc:
            return _error_response(exc)
        return Response(serializer.data, status=status.HTTP_200_OK)

    # PROTECTED
    guard = _ensure_editor(request)
    if guard:
        return guard

    serializer = ProductSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    product = Product(**serializer.validated_data)
    product.set_gallery(EMPTY_GALLERY)
    try:
        gateway.save(product)
    except PersistenceError as exc:
        return _error_response(exc)

    return Response(
        {"message": "Product created", "data": ProductSerializer(product).data},
        status=status.HTTP_201_CREATED
    )


@api_view(["GET", "PUT", "DELETE"])
@permission_classes([AllowAny])
def product_detail(request, id):

    try:
        product = gateway.load(id)
    except PersistenceError as exc:
        return _error_response(exc)

    # PUBLIC
    if request.method == "GET":
        if not product.is_active and not _is_editor(request):
            return Response(
                {"detail": "Product not found"},
                status=status.HTTP_404_NOT_FOUND
            )
        serializer = ProductSerializer(product)
        return Response(serializer.data, status=status.HTTP_200_OK)

    # PROTECTED
    guard = _ensure_editor(request)
    if guard:
        return guard

    if request.method == "PUT":
        serializer = ProductSerializer(product, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        for field, value in serializer.validated_data.items():
            setattr(product, field, value)
        try:
            gateway.save(product)
        except PersistenceError as exc:
            return _error_response(exc)
        return Response(
            {"message": "Product updated", "data": ProductSerializer(product).data},
            status=status.HTTP_200_OK
        )

    try:
        orphaned = gateway.remove(id)
    except PersistenceError as exc:
        return _error_response(exc)
    return Response(
        {"message": "Product deleted", "orphaned_images": orphaned},
        status=status.HTTP_200_OK
    )


@api_view(["GET"])
def inactive_product_list(request):
    guard = _ensure_editor(request)
    if guard:
        return guard

    try:
        products = gateway.list(is_active=False)
    except PersistenceError as exc:
        return _error_response(exc)
    serializer = ProductSerializer(products, many=True)
    return Response(serializer.data, status=status.HTTP_200_OK)


# GALLERY VIEWER

@api_view(["GET"])
@permission_classes([AllowAny])
def product_gallery(request, id):
    try:
        product = gateway.load(id)
    except PersistenceError as exc:
        return _error_response(exc)

    if not product.is_active and not _is_editor(request):
        return Response(
            {"detail": "Product not found"},
            status=status.HTTP_404_NOT_FOUND
        )

    viewer = GalleryViewer.for_product(
        product,
        aspect_ratio=request.query_params.get("aspect", "1:1"),
    )
    selected = request.query_params.get("selected")
    if selected not in (None, ""):
        try:
            viewer.select(int(selected))
        except (TypeError, ValueError, IndexOutOfRangeError):
            return Response(
                {"detail": "Invalid thumbnail index"},
                status=status.HTTP_400_BAD_REQUEST
            )

    return Response(viewer.render().to_dict(), status=status.HTTP_200_OK)


# GALLERY EDITING APIs

@api_view(["POST"])
@parser_classes([MultiPartParser, FormParser])
def upload_image(request):
    guard = _ensure_editor(request)
    if guard:
        return guard

    upload, error = _read_upload(request)
    if error:
        return error

    try:
        locator = _store_upload(upload)
    except (UnsupportedMediaError, DecodeError, StoreError) as exc:
        return _error_response(exc)

    return Response({"url": locator}, status=status.HTTP_201_CREATED)


@api_view(["POST"])
@parser_classes([MultiPartParser, FormParser])
def product_image_add(request, id):
    guard = _ensure_editor(request)
    if guard:
        return guard

    upload, error = _read_upload(request)
    if error:
        return error

    try:
        gateway.load(id)
        locator = _store_upload(upload)
        product = gateway.update_gallery(id, lambda gallery: add_asset(normalize(gallery), locator))
    except (UnsupportedMediaError, DecodeError, StoreError, PersistenceError) as exc:
        return _error_response(exc)

    return Response(
        {"url": locator, "images": product.gallery.to_records()},
        status=status.HTTP_201_CREATED
    )


def _gallery_update(id, mutate):
    try:
        product = gateway.update_gallery(id, mutate)
    except (IndexOutOfRangeError, PersistenceError) as exc:
        return _error_response(exc)
    return Response(
        {"images": product.gallery.to_records()},
        status=status.HTTP_200_OK
    )


@api_view(["DELETE"])
def product_image_remove(request, id, index):
    guard = _ensure_editor(request)
    if guard:
        return guard
    return _gallery_update(id, lambda gallery: remove_asset(normalize(gallery), index))


@api_view(["POST"])
def product_image_primary(request, id, index):
    guard = _ensure_editor(request)
    if guard:
        return guard
    return _gallery_update(id, lambda gallery: set_primary(gallery, index))


@api_view(["POST"])
def product_image_move(request, id, index):
    guard = _ensure_editor(request)
    if guard:
        return guard

    try:
        to_index = int(request.data.get("to"))
    except (TypeError, ValueError):
        return Response(
            {"detail": "Target position required"},
            status=status.HTTP_400_BAD_REQUEST
        )
    return _gallery_update(id, lambda gallery: move_asset(normalize(gallery), index, to_index))
