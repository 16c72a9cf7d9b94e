"""
Ordered image gallery for a single product.

A gallery is an immutable value: every operation returns a new
``Gallery`` and leaves its input untouched, so two editors holding the
same value never see each other's changes.

A non-empty gallery produced by these operations always has exactly one
primary asset. Galleries read back from storage are not checked, which is
why ``resolve_display_asset`` falls back to the first asset.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Iterator, List, Optional, Tuple

from .exceptions import IndexOutOfRangeError


@dataclass(frozen=True)
class ImageAsset:
    locator: str
    is_primary: bool = False

    def to_record(self) -> dict:
        return {"url": self.locator, "is_primary": self.is_primary}


@dataclass(frozen=True)
class Gallery:
    assets: Tuple[ImageAsset, ...] = ()

    def __len__(self) -> int:
        return len(self.assets)

    def __iter__(self) -> Iterator[ImageAsset]:
        return iter(self.assets)

    def __getitem__(self, index: int) -> ImageAsset:
        return self.assets[_checked(self, index)]

    @property
    def locators(self) -> List[str]:
        return [asset.locator for asset in self.assets]

    @property
    def primary_index(self) -> Optional[int]:
        for index, asset in enumerate(self.assets):
            if asset.is_primary:
                return index
        return None

    def to_records(self) -> List[dict]:
        return [asset.to_record() for asset in self.assets]

    @classmethod
    def from_records(cls, records: Optional[Iterable]) -> "Gallery":
        """
        Build a gallery from stored ``{"url", "is_primary"}`` rows.

        Rows without a usable url are skipped. The primary flags are taken
        as stored, even when they break the single-primary rule.
        """
        assets = []
        for row in records or []:
            if not isinstance(row, dict):
                continue
            url = row.get("url")
            if not isinstance(url, str) or not url.strip():
                continue
            assets.append(ImageAsset(url.strip(), bool(row.get("is_primary", False))))
        return cls(tuple(assets))


EMPTY_GALLERY = Gallery()


def _checked(gallery: Gallery, index: int) -> int:
    if isinstance(index, bool) or not isinstance(index, int):
        raise IndexOutOfRangeError(f"Image index must be an integer, got {index!r}")
    if index < 0 or index >= len(gallery.assets):
        raise IndexOutOfRangeError(
            f"Image index {index} out of range for gallery of {len(gallery.assets)}"
        )
    return index


def add_asset(gallery: Gallery, locator: str) -> Gallery:
    # must survive a to_records/from_records round trip
    if not isinstance(locator, str) or not locator.strip():
        raise ValueError(f"Image locator must be a non-empty string, got {locator!r}")
    asset = ImageAsset(locator, is_primary=not gallery.assets)
    return Gallery(gallery.assets + (asset,))


def remove_asset(gallery: Gallery, index: int) -> Gallery:
    index = _checked(gallery, index)
    removed = gallery.assets[index]
    remaining = gallery.assets[:index] + gallery.assets[index + 1:]
    if removed.is_primary and remaining:
        remaining = (replace(remaining[0], is_primary=True),) + remaining[1:]
    return Gallery(remaining)


def set_primary(gallery: Gallery, index: int) -> Gallery:
    index = _checked(gallery, index)
    return Gallery(
        tuple(
            replace(asset, is_primary=(position == index))
            for position, asset in enumerate(gallery.assets)
        )
    )


def move_asset(gallery: Gallery, from_index: int, to_index: int) -> Gallery:
    """Move one asset to a new position; its primary flag moves with it."""
    from_index = _checked(gallery, from_index)
    to_index = _checked(gallery, to_index)
    assets = list(gallery.assets)
    assets.insert(to_index, assets.pop(from_index))
    return Gallery(tuple(assets))


def resolve_display_asset(gallery: Gallery) -> Optional[ImageAsset]:
    if not gallery.assets:
        return None
    for asset in gallery.assets:
        if asset.is_primary:
            return asset
    return gallery.assets[0]


def is_consistent(gallery: Gallery) -> bool:
    flagged = sum(1 for asset in gallery.assets if asset.is_primary)
    if not gallery.assets:
        return flagged == 0
    return flagged == 1


def normalize(gallery: Gallery) -> Gallery:
    """Repair primary flags: keep the first flagged asset, else the first asset."""
    if is_consistent(gallery):
        return gallery
    primary = gallery.primary_index
    return set_primary(gallery, 0 if primary is None else primary)
