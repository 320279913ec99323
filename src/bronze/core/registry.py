"""Registry of known images for one profile; the unit of persistence."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterator, Optional

from ..errors import SnapshotError
from ..utils.error_handler import ErrorHandler
from ..utils.logger import get_logger
from ..utils.path_utils import image_id_for
from .image import Image


class ImageRegistry:
    """Images indexed by source ID: the source path relative to `basepath`
    with its extension stripped."""

    def __init__(
        self,
        basepath: Path | str,
        images: Optional[dict[str, Image]] = None,
        *,
        config=None,
        logger=None,
        error_handler: Optional[ErrorHandler] = None,
    ) -> None:
        self.basepath = str(basepath)
        self.images: dict[str, Image] = images if images is not None else {}
        self.config = config
        self.logger = logger or get_logger(self.__class__.__name__)
        self.error_handler = error_handler

    @classmethod
    def from_dict(
        cls,
        data: Any,
        *,
        config=None,
        logger=None,
        error_handler: Optional[ErrorHandler] = None,
    ) -> "ImageRegistry":
        """Rebuild a registry from its snapshot.

        Missing `basepath` or `images` rejects the whole snapshot; a malformed
        image entry is skipped so that image is simply treated as new.
        """
        if not isinstance(data, dict):
            raise SnapshotError("Snapshot is not an object")
        if not data.get("basepath"):
            raise SnapshotError("No 'basepath' property")
        if not isinstance(data.get("images"), dict):
            raise SnapshotError("No 'images' property")

        logger = logger or get_logger(cls.__name__)
        images: dict[str, Image] = {}
        for image_id, entry in data["images"].items():
            try:
                image = Image.from_dict(image_id, entry, config=config)
            except SnapshotError as exc:
                logger.warning(f"Skipping snapshot entry: {exc}")
                if error_handler is not None:
                    error_handler.add_warning("W-SNAPSHOT-ENTRY", str(exc), file_path=image_id)
                continue
            images[image.id] = image

        return cls(
            data["basepath"],
            images,
            config=config,
            logger=logger,
            error_handler=error_handler,
        )

    def __len__(self) -> int:
        return len(self.images)

    def __contains__(self, image_id: object) -> bool:
        return image_id in self.images

    def __iter__(self) -> Iterator[Image]:
        return iter(self.images.values())

    def get(self, image_id: str) -> Optional[Image]:
        return self.images.get(image_id)

    def image_id_for(self, source_path: Path | str) -> str:
        return image_id_for(source_path, self.basepath)

    def get_image_from_source(self, source_path: Path | str) -> Image:
        """Existing image for `source_path`, or a new one that will fetch its size."""
        image_id = self.image_id_for(source_path)
        src = str(source_path)
        image = self.images.get(image_id)

        if image is None:
            image = Image(image_id, src, config=self.config)
            self.images[image_id] = image
        elif Path(image.src).suffix.lower() != Path(src).suffix.lower():
            message = f"{image_id}: source extension changed ({image.src} -> {src})"
            self.logger.warning(message)
            if self.error_handler is not None:
                self.error_handler.add_warning("W-EXT-CHANGED", message, file_path=src)
            image.src = src
        elif image.src != src:
            image.src = src

        image.queue_size_retrieval()
        return image

    def to_dict(self) -> dict[str, Any]:
        return {
            "basepath": self.basepath,
            "images": {image_id: image.to_dict() for image_id, image in self.images.items()},
        }
