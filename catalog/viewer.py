"""
Read-only gallery viewer for storefront pages.

The viewer keeps a pointer to the image on display and a loading flag; it
never changes the gallery it was given.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .exceptions import IndexOutOfRangeError
from .gallery import Gallery, resolve_display_asset


@dataclass(frozen=True)
class Thumbnail:
    index: int
    locator: str
    is_primary: bool
    selected: bool


@dataclass(frozen=True)
class Placeholder:
    label: str
    initials: str


@dataclass(frozen=True)
class ViewerFrame:
    image: Optional[str]
    placeholder: Optional[Placeholder]
    thumbnails: Tuple[Thumbnail, ...]
    loading: bool
    aspect_ratio: str

    def to_dict(self):
        return {
            "image": self.image,
            "placeholder": (
                {"label": self.placeholder.label, "initials": self.placeholder.initials}
                if self.placeholder
                else None
            ),
            "thumbnails": [
                {
                    "index": thumb.index,
                    "url": thumb.locator,
                    "is_primary": thumb.is_primary,
                    "selected": thumb.selected,
                }
                for thumb in self.thumbnails
            ],
            "loading": self.loading,
            "aspect_ratio": self.aspect_ratio,
        }


def initials_for(title):
    words = [word for word in (title or "").split() if word[:1].isalnum()]
    return "".join(word[0] for word in words[:2]).upper() or "?"


class GalleryViewer:
    def __init__(self, title: str, gallery: Gallery, aspect_ratio: str = "1:1"):
        self.title = title
        self.gallery = gallery
        self.aspect_ratio = aspect_ratio

        display = resolve_display_asset(gallery)
        self.current_index = None if display is None else gallery.assets.index(display)
        self.loading = display is not None

    @classmethod
    def for_product(cls, product, aspect_ratio="1:1"):
        return cls(product.title, product.gallery, aspect_ratio=aspect_ratio)

    @property
    def current(self):
        if self.current_index is None:
            return None
        return self.gallery.assets[self.current_index]

    def select(self, index: int):
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(self.gallery):
            raise IndexOutOfRangeError(f"No thumbnail at index {index!r}")
        if index != self.current_index:
            self.current_index = index
            self.loading = True
        return self.current

    def mark_loaded(self, locator: str):
        # a late load event for an earlier selection must not clear the flag
        current = self.current
        if current is not None and current.locator == locator:
            self.loading = False

    @property
    def thumbnails(self):
        return tuple(
            Thumbnail(index, asset.locator, asset.is_primary, index == self.current_index)
            for index, asset in enumerate(self.gallery)
        )

    def render(self) -> ViewerFrame:
        current = self.current
        placeholder = None
        if current is None or self.loading:
            placeholder = Placeholder(self.title, initials_for(self.title))
        return ViewerFrame(
            image=current.locator if current else None,
            placeholder=placeholder,
            thumbnails=self.thumbnails,
            loading=self.loading,
            aspect_ratio=self.aspect_ratio,
        )
