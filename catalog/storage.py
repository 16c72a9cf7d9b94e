import logging
import mimetypes
import secrets
import time

from cloudinary.exceptions import Error as CloudinaryError
from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage

from .exceptions import StoreError

logger = logging.getLogger(__name__)

EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
}


def extension_for(mime_type):
    if mime_type in EXTENSIONS:
        return EXTENSIONS[mime_type]
    guessed = mimetypes.guess_extension(mime_type or "")
    return guessed.lstrip(".") if guessed else "bin"


class AssetStore:
    """
    Writes transcoded image bytes to the media storage and hands back a
    public URL for them.

    The storage is whatever Django's default storage is configured to be:
    Cloudinary in production, the local filesystem otherwise.
    """

    def __init__(self, storage=None, folder=None):
        self.storage = storage or default_storage
        self.folder = (folder or getattr(settings, "GALLERY_UPLOAD_FOLDER", "products")).strip("/")

    def build_path(self, mime_type, path_hint=None):
        folder = (path_hint or self.folder).strip("/")
        token = secrets.token_hex(4)
        return f"{folder}/{int(time.time() * 1000)}-{token}.{extension_for(mime_type)}"

    def store(self, data, mime_type, path_hint=None):
        """
        Upload ``data`` under a collision-resistant name inside ``path_hint``
        (a folder, defaults to the configured upload folder).

        Returns the public locator. Failures raise ``StoreError`` and are
        not retried.
        """
        name = self.build_path(mime_type, path_hint)
        content = ContentFile(data, name=name)
        content.content_type = mime_type

        try:
            stored_path = self.storage.save(name, content)
            locator = self.storage.url(stored_path)
        except (OSError, CloudinaryError) as exc:
            logger.warning("Upload of %s failed: %s", name, exc)
            raise StoreError(str(exc)) from exc

        logger.info("Stored %s (%d bytes) at %s", stored_path, len(data), locator)
        return locator
