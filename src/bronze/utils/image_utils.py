"""Pillow-backed image engine: metadata, resize, encode and statistics."""

from __future__ import annotations

from collections import OrderedDict
import os
from pathlib import Path
import threading
from typing import Any, Optional, Tuple

from PIL import Image, ImageCms, ImageOps, ImageStat

from ..errors import UnsupportedOptionError
from ..models.transform import TransformSpec

PIL_FORMATS = {"jpeg": "JPEG", "webp": "WEBP"}

# Encode option name -> Pillow save() keyword.
ENCODE_OPTIONS = {
    "jpeg": {
        "quality": "quality",
        "progressive": "progressive",
        "optimize": "optimize",
        "optimiseCoding": "optimize",
        "optimizeCoding": "optimize",
        "mozjpeg": "optimize",
        "chromaSubsampling": "subsampling",
    },
    "webp": {
        "quality": "quality",
        "lossless": "lossless",
        "effort": "method",
        "method": "method",
        "alphaQuality": "alpha_quality",
    },
}

RESIZE_KEYS = {"width", "height", "fit", "withoutEnlargement", "background"}

Size = Tuple[int, int]


def _register_heif_opener() -> None:
    try:
        from pillow_heif import register_heif_opener

        register_heif_opener()
    except ImportError:
        return


class SourceCache:
    """Decoded sources shared by the operations of one run.

    Every caller gets its own copy, so concurrent derivations from one source
    never touch the cached pixels.
    """

    def __init__(self, max_entries: int = 8) -> None:
        self.max_entries = max(0, int(max_entries))
        self._entries: "OrderedDict[str, Image.Image]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def open(self, path: Path) -> Image.Image:
        key = os.path.abspath(str(path))
        with self._lock:
            cached = self._entries.get(key)
            if cached is not None:
                self._entries.move_to_end(key)
                self.hits += 1
        if cached is not None:
            return cached.copy()

        image = decode_image(path)
        with self._lock:
            self.misses += 1
            if self.max_entries > 0:
                self._entries[key] = image
                self._entries.move_to_end(key)
                while len(self._entries) > self.max_entries:
                    self._entries.popitem(last=False)
        return image.copy()

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def decode_image(path: Path) -> Image.Image:
    _register_heif_opener()
    with Image.open(path) as handle:
        handle.load()
        return handle.copy()


def read_image_size(path: Path) -> Size:
    _register_heif_opener()
    with Image.open(path) as handle:
        return handle.size


def resize_image(image: Image.Image, resize: Optional[dict[str, Any]]) -> Image.Image:
    """Resize following width/height/fit semantics.

    One dimension keeps the aspect ratio. With both, `fit` decides:
    cover (crop, default), contain (letterbox), fill (stretch),
    inside (fit within) or outside (cover without crop).
    """
    if not resize:
        return image
    unknown = set(resize) - RESIZE_KEYS
    if unknown:
        raise UnsupportedOptionError(f"Unsupported resize option(s): {', '.join(sorted(unknown))}")

    src_w, src_h = image.size
    width = resize.get("width")
    height = resize.get("height")
    fit = resize.get("fit") or "cover"
    without_enlargement = bool(resize.get("withoutEnlargement", False))

    if not width and not height:
        return image

    if not width or not height:
        scale = (width / src_w) if width else (height / src_h)
        if without_enlargement and scale > 1:
            return image
        target = (max(1, round(src_w * scale)), max(1, round(src_h * scale)))
        return image.resize(target, Image.Resampling.LANCZOS)

    if without_enlargement and (width > src_w or height > src_h):
        if fit in {"inside", "outside"}:
            scale = _box_scale(fit, src_w, src_h, width, height)
            if scale >= 1:
                return image
        else:
            return image

    if fit == "fill":
        return image.resize((width, height), Image.Resampling.LANCZOS)
    if fit in {"inside", "outside"}:
        scale = _box_scale(fit, src_w, src_h, width, height)
        target = (max(1, round(src_w * scale)), max(1, round(src_h * scale)))
        return image.resize(target, Image.Resampling.LANCZOS)
    if fit == "contain":
        background = resize.get("background", (0, 0, 0))
        if isinstance(background, list):
            background = tuple(background)
        return ImageOps.pad(image, (width, height), Image.Resampling.LANCZOS, color=background)
    if fit == "cover":
        return ImageOps.fit(image, (width, height), Image.Resampling.LANCZOS)
    raise UnsupportedOptionError(f"Unsupported resize fit: {fit}")


def _box_scale(fit: str, src_w: int, src_h: int, width: int, height: int) -> float:
    if fit == "inside":
        return min(width / src_w, height / src_h)
    return max(width / src_w, height / src_h)


def build_save_options(format_name: str, options: Optional[dict[str, Any]]) -> dict[str, Any]:
    if format_name not in ENCODE_OPTIONS:
        raise UnsupportedOptionError(f"Unsupported output format: {format_name}")
    mapping = ENCODE_OPTIONS[format_name]
    save_options: dict[str, Any] = {}
    for key, value in (options or {}).items():
        if key not in mapping:
            raise UnsupportedOptionError(f"Unsupported {format_name} option: {key}")
        save_options[mapping[key]] = value
    return save_options


def prepare_mode(image: Image.Image, format_name: str) -> Image.Image:
    if format_name == "jpeg" and image.mode not in {"RGB", "L", "CMYK"}:
        return image.convert("RGB")
    if format_name == "webp" and image.mode not in {"RGB", "RGBA"}:
        has_alpha = "A" in image.mode or "transparency" in image.info
        return image.convert("RGBA" if has_alpha else "RGB")
    return image


def encode_to_file(image: Image.Image, target_path: Path, format_name: str, options=None) -> Size:
    """Encode atomically: a failed write never leaves a file at `target_path`."""
    save_options = build_save_options(format_name, options)
    prepared = prepare_mode(image, format_name)
    temp_path = target_path.with_name(f".{target_path.name}.tmp")
    try:
        prepared.save(temp_path, format=PIL_FORMATS[format_name], **save_options)
        os.replace(temp_path, target_path)
    finally:
        if temp_path.exists():
            temp_path.unlink()
    return prepared.size


def _lab_transform():
    srgb = ImageCms.createProfile("sRGB")
    lab = ImageCms.createProfile("LAB")
    return ImageCms.buildTransformFromOpenProfiles(srgb, lab, "RGB", "LAB")


def measure_brightness(image: Image.Image) -> int:
    """Average L* lightness, 0 (black) to 100 (white)."""
    lab_image = ImageCms.applyTransform(image.convert("RGB"), _lab_transform())
    lightness = ImageStat.Stat(lab_image).mean[0]
    return int(round(lightness / 255 * 100))


def dominant_color(image: Image.Image, palette_size: int = 8) -> str:
    sample = image.convert("RGB")
    sample.thumbnail((64, 64))
    quantized = sample.quantize(colors=palette_size, method=Image.Quantize.MEDIANCUT)
    colors = quantized.getcolors() or [(1, 0)]
    _count, index = max(colors)
    palette = quantized.getpalette() or [0, 0, 0]
    red, green, blue = palette[index * 3 : index * 3 + 3]
    return f"#{red:02x}{green:02x}{blue:02x}"


class PillowImageEngine:
    """The pixel work behind GENERATE, RETRIEVE_SIZE and MEASURE_BRIGHTNESS."""

    def __init__(self, source_cache: Optional[SourceCache] = None) -> None:
        self.source_cache = source_cache if source_cache is not None else SourceCache()

    def read_size(self, source_path: Path) -> Size:
        return read_image_size(source_path)

    def generate(self, source_path: Path, target_path: Path, transform: TransformSpec) -> Size:
        image = self.source_cache.open(source_path)
        resized = resize_image(image, transform.resize)
        return encode_to_file(resized, target_path, transform.format_name, transform.format_options)

    def measure(self, sample_path: Path) -> Tuple[int, str]:
        image = decode_image(sample_path)
        return measure_brightness(image), dominant_color(image)
