"""
Editing session for one product's gallery.

Uploads run as asyncio tasks and are applied to the gallery the moment
their locator is known. Each completion reads ``self.gallery`` at that
moment and writes the result back, so uploads finishing in any order all
land in the gallery. Nothing is persisted until ``save()`` is called.
"""
from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from asgiref.sync import sync_to_async

from .exceptions import (
    DecodeError,
    PersistenceError,
    StoreError,
    UnsupportedMediaError,
)
from .gallery import add_asset, move_asset, normalize, remove_asset, set_primary
from .gateway import CatalogGateway
from .pipeline import ingest_image

logger = logging.getLogger(__name__)

IDLE = "idle"
UPLOADING = "uploading"

UPLOAD_FAILED_MESSAGE = "Upload failed, try again"


@dataclass(frozen=True)
class UploadFailure:
    filename: str
    message: str


@dataclass(frozen=True)
class EditorTile:
    index: int
    locator: str
    is_primary: bool


@dataclass(frozen=True)
class EditorView:
    tiles: Tuple[EditorTile, ...]
    state: str
    pending_uploads: int
    dirty: bool
    failures: Tuple[UploadFailure, ...]

    @property
    def is_empty(self) -> bool:
        return not self.tiles


async def default_uploader(raw: bytes, mime_type: str) -> str:
    return await sync_to_async(ingest_image, thread_sensitive=False)(raw, mime_type)


class GalleryEditor:
    def __init__(
        self,
        product,
        editor=None,
        gateway: Optional[CatalogGateway] = None,
        uploader: Optional[Callable] = None,
        on_change: Optional[Callable[[EditorView], None]] = None,
    ):
        self.product = product
        # authenticated caller; capability checks happen before construction
        self.editor = editor
        self.gateway = gateway or CatalogGateway()
        self.uploader = uploader or default_uploader
        self.on_change = on_change

        stored = product.gallery
        self.gallery = normalize(stored)
        # repaired legacy data counts as an unsaved change
        self.dirty = self.gallery != stored
        self.closed = False
        self.failures = []
        self._pending = {}
        self._tickets = itertools.count(1)

    @property
    def state(self) -> str:
        return UPLOADING if self._pending else IDLE

    @property
    def pending_uploads(self) -> int:
        return len(self._pending)

    def render(self) -> EditorView:
        return EditorView(
            tiles=tuple(
                EditorTile(index, asset.locator, asset.is_primary)
                for index, asset in enumerate(self.gallery)
            ),
            state=self.state,
            pending_uploads=self.pending_uploads,
            dirty=self.dirty,
            failures=tuple(self.failures),
        )

    def _changed(self):
        if self.on_change is not None:
            self.on_change(self.render())

    def _ensure_open(self):
        if self.closed:
            raise RuntimeError("Editing session is closed")

    # uploads

    def start_upload(self, raw: bytes, mime_type: str, filename: str = "") -> asyncio.Task:
        self._ensure_open()
        ticket = next(self._tickets)
        task = asyncio.create_task(self._run_upload(ticket, raw, mime_type, filename))
        self._pending[ticket] = task
        self._changed()
        return task

    async def upload(self, raw: bytes, mime_type: str, filename: str = "") -> Optional[str]:
        return await self.start_upload(raw, mime_type, filename)

    async def wait_for_uploads(self):
        if self._pending:
            await asyncio.gather(*self._pending.values(), return_exceptions=True)

    async def _run_upload(self, ticket, raw, mime_type, filename):
        try:
            locator = await self.uploader(raw, mime_type)
        except (UnsupportedMediaError, DecodeError) as exc:
            self._fail(filename, str(exc))
            return None
        except StoreError as exc:
            logger.warning("Upload of %s failed: %s", filename or "image", exc)
            self._fail(filename, UPLOAD_FAILED_MESSAGE)
            return None
        except Exception:
            logger.exception("Unexpected error uploading %s", filename or "image")
            self._fail(filename, UPLOAD_FAILED_MESSAGE)
            return None
        finally:
            self._pending.pop(ticket, None)

        if self.closed:
            logger.info("Discarding upload %s that finished after the session closed", locator)
            return None

        self.gallery = add_asset(self.gallery, locator)
        self.dirty = True
        self._changed()
        return locator

    def _fail(self, filename, message):
        self.failures.append(UploadFailure(filename, message))
        if not self.closed:
            self._changed()

    def dismiss_failures(self):
        self.failures = []
        self._changed()

    # gestures

    def _apply(self, gallery):
        self.gallery = gallery
        self.dirty = True
        self._changed()

    def remove(self, index: int):
        self._ensure_open()
        self._apply(remove_asset(self.gallery, index))

    def set_primary(self, index: int):
        self._ensure_open()
        self._apply(set_primary(self.gallery, index))

    def move(self, from_index: int, to_index: int):
        self._ensure_open()
        self._apply(move_asset(self.gallery, from_index, to_index))

    # persistence

    async def save(self):
        """
        Persist the current gallery. On failure the session stays dirty and
        the local gallery is kept, so the save can simply be retried.
        """
        self._ensure_open()
        snapshot = self.gallery
        previous_images = self.product.images
        self.product.set_gallery(snapshot)
        try:
            await sync_to_async(self.gateway.save)(self.product)
        except PersistenceError:
            self.product.images = previous_images
            raise

        if self.gallery is snapshot:
            self.dirty = False
        self._changed()
        return self.product

    def close(self):
        """Stop editing; uploads still in flight are cancelled and never applied."""
        self.closed = True
        for task in list(self._pending.values()):
            task.cancel()
        self._pending.clear()
