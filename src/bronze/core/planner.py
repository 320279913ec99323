"""Turns one profile into a registry and its queued operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from ..config import ConfigManager
from ..config.defaults import ALLOWED_FORMATS, DEFAULT_FORMATS, DEFAULT_TRANSFORM_DEST
from ..errors import SnapshotError
from ..models.transform import TransformSpec
from ..utils import path_utils
from ..utils.error_handler import ErrorHandler
from ..utils.logger import get_logger
from .image import Image
from .operation import Operation
from .registry import ImageRegistry


@dataclass
class ProfilePlan:
    name: str
    registry: ImageRegistry
    operations: list[Operation] = field(default_factory=list)
    owners: dict[Operation, Image] = field(default_factory=dict)
    source_count: int = 0


class ProfilePlanner:
    def __init__(
        self,
        config: ConfigManager,
        logger=None,
        error_handler: Optional[ErrorHandler] = None,
    ) -> None:
        self.config = config
        self.logger = logger or get_logger(self.__class__.__name__)
        self.error_handler = error_handler or ErrorHandler()

    def prepare_profile(
        self,
        profile_name: str,
        profile: dict[str, Any],
        saved: Optional[dict[str, Any]] = None,
    ) -> ProfilePlan:
        source_pattern = str(profile["src"])
        source_base = path_utils.glob_parent(source_pattern)
        sources = path_utils.expand_sources(source_pattern)
        registry = self._load_registry(profile_name, saved, source_base)
        plan = ProfilePlan(name=profile_name, registry=registry, source_count=len(sources))

        transforms = profile.get("transforms") or {}
        measure_brightness = bool(profile.get("measureBrightness", False))

        seen: dict[str, Path] = {}
        for source_index, source_path in enumerate(sources):
            image_id = registry.image_id_for(source_path)
            if image_id in seen:
                message = (
                    f"Profile {profile_name}: {source_path} shares image ID {image_id} "
                    f"with {seen[image_id]}; skipped"
                )
                self.logger.warning(message)
                self.error_handler.add_warning("W-DUPLICATE-SOURCE", message, file_path=str(source_path))
                continue
            seen[image_id] = source_path
            image = registry.get_image_from_source(source_path)
            source_name = source_path.stem
            source_folder = path_utils.source_folder_for(source_path, source_base)

            for transform_name, transform in transforms.items():
                transform = transform or {}
                dest_template = transform.get("dest") or DEFAULT_TRANSFORM_DEST
                for format_name, format_options in self._resolve_formats(profile, transform).items():
                    if format_name not in ALLOWED_FORMATS:
                        self.logger.debug(f"{profile_name}: ignoring format {format_name}")
                        continue
                    output_path = path_utils.build_output_path(
                        profile["destFolder"],
                        dest_template,
                        format_name,
                        source_name=source_name,
                        source_folder=source_folder,
                        transform_name=transform_name,
                        source_index=source_index,
                    )
                    image.reconcile(
                        transform_name,
                        format_name,
                        output_path,
                        TransformSpec(
                            format_name=format_name,
                            format_options=dict(format_options or {}),
                            resize=transform.get("resize"),
                        ),
                    )

            # Needs the final set of versions to pick the smallest one.
            if measure_brightness:
                image.queue_brightness_measure()

            for op in image.unqueue_pending_ops():
                plan.operations.append(op)
                plan.owners[op] = image

        self.logger.info(
            f"Profile {profile_name}: {len(sources)} source(s), {len(plan.operations)} operation(s)"
        )
        return plan

    def _resolve_formats(self, profile: dict[str, Any], transform: dict[str, Any]) -> dict[str, Any]:
        return transform.get("formats") or profile.get("formats") or DEFAULT_FORMATS

    def _load_registry(
        self,
        profile_name: str,
        saved: Optional[dict[str, Any]],
        source_base: Path,
    ) -> ImageRegistry:
        if saved is None:
            return self._new_registry(source_base)

        try:
            registry = ImageRegistry.from_dict(
                saved,
                config=self.config,
                error_handler=self.error_handler,
            )
        except SnapshotError as exc:
            message = f"Profile {profile_name}: prior state rejected ({exc}); starting fresh"
            self.logger.warning(message)
            self.error_handler.add_warning("W-SNAPSHOT-REJECTED", message)
            return self._new_registry(source_base)

        if not path_utils.same_path(registry.basepath, source_base):
            message = (
                f"Profile {profile_name}: source base changed "
                f"({registry.basepath} -> {source_base}); image IDs stay relative to {registry.basepath}"
            )
            self.logger.warning(message)
            self.error_handler.add_warning("W-BASEPATH-CHANGED", message)
        return registry

    def _new_registry(self, source_base: Path) -> ImageRegistry:
        return ImageRegistry(source_base, config=self.config, error_handler=self.error_handler)
