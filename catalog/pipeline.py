import logging

from django.conf import settings

from .storage import AssetStore
from .transcoder import MAX_EDGE, transcode

logger = logging.getLogger(__name__)


def ingest_image(raw, declared_mime_type, store=None, path_hint=None):
    """
    Transcode an uploaded image and store the result, returning its locator.

    Transcoding errors are raised before anything is sent to the store.
    """
    image = transcode(
        raw,
        declared_mime_type,
        max_edge=getattr(settings, "GALLERY_MAX_EDGE", MAX_EDGE),
        jpeg_quality=getattr(settings, "GALLERY_JPEG_QUALITY", None),
    )
    logger.debug(
        "Transcoded %s upload to %s %dx%d",
        declared_mime_type,
        image.extension,
        image.width,
        image.height,
    )
    store = store or AssetStore()
    return store.store(image.data, image.mime_type, path_hint)
