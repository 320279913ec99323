"""Configuration validation."""

from __future__ import annotations

import hashlib
from string import Template
from typing import Any

from .defaults import RESIZE_FITS, TEMPLATE_VARIABLES


def validate_config(config: dict[str, Any]) -> list[str]:
    errors: list[str] = []

    def add_error(path: str, message: str) -> None:
        errors.append(f"{path}: {message}")

    info_file = config.get("infoFile")
    if info_file is not None and (not isinstance(info_file, str) or not info_file.strip()):
        add_error("infoFile", "must be a non-empty string")

    if not isinstance(config.get("dry", False), bool):
        add_error("dry", "must be a boolean")

    profiles = config.get("profiles", {})
    if not isinstance(profiles, dict):
        add_error("profiles", "must be a mapping")
        profiles = {}

    for profile_name, profile in profiles.items():
        _validate_profile(f"profiles.{profile_name}", profile, add_error)

    execution = config.get("execution", {})
    max_workers = execution.get("max_workers", 4)
    source_cache_size = execution.get("source_cache_size", 8)
    if not isinstance(max_workers, int) or max_workers <= 0:
        add_error("execution.max_workers", "must be a positive integer")
    if not isinstance(source_cache_size, int) or source_cache_size < 0:
        add_error("execution.source_cache_size", "must be an integer >= 0")

    retry = config.get("retry", {})
    max_retries = retry.get("max_retries", 2)
    backoff_base_sec = retry.get("backoff_base_sec", 0.2)
    backoff_cap_sec = retry.get("backoff_cap_sec", 2.0)
    if not isinstance(max_retries, int) or max_retries < 0:
        add_error("retry.max_retries", "must be an integer >= 0")
    if not isinstance(backoff_base_sec, (int, float)) or backoff_base_sec <= 0:
        add_error("retry.backoff_base_sec", "must be a number > 0")
    if not isinstance(backoff_cap_sec, (int, float)) or backoff_cap_sec <= 0:
        add_error("retry.backoff_cap_sec", "must be a number > 0")
    if (
        isinstance(backoff_base_sec, (int, float))
        and isinstance(backoff_cap_sec, (int, float))
        and backoff_base_sec > backoff_cap_sec
    ):
        add_error("retry", "backoff_base_sec cannot exceed backoff_cap_sec")

    algorithm = config.get("hash", {}).get("algorithm", "md5")
    if not isinstance(algorithm, str) or algorithm.lower() not in hashlib.algorithms_available:
        add_error("hash.algorithm", "must name a hashlib algorithm")

    return errors


def _validate_profile(path: str, profile: Any, add_error) -> None:
    if not isinstance(profile, dict):
        add_error(path, "must be a mapping")
        return

    for key in ("src", "destFolder"):
        value = profile.get(key)
        if not isinstance(value, str) or not value.strip():
            add_error(f"{path}.{key}", "must be a non-empty string")

    src = profile.get("src")
    if isinstance(src, str) and ("{" in src or "}" in src):
        add_error(f"{path}.src", "brace patterns are not supported; use one profile per pattern")

    formats = profile.get("formats")
    if formats is not None:
        _validate_formats(f"{path}.formats", formats, add_error)

    measure_brightness = profile.get("measureBrightness", False)
    if not isinstance(measure_brightness, bool):
        add_error(f"{path}.measureBrightness", "must be a boolean")

    transforms = profile.get("transforms")
    if not isinstance(transforms, dict):
        add_error(f"{path}.transforms", "must be a mapping")
        return

    for transform_name, transform in transforms.items():
        transform_path = f"{path}.transforms.{transform_name}"
        if transform is None:
            continue
        if not isinstance(transform, dict):
            add_error(transform_path, "must be a mapping")
            continue
        if transform.get("formats") is not None:
            _validate_formats(f"{transform_path}.formats", transform["formats"], add_error)
        if transform.get("resize") is not None:
            _validate_resize(f"{transform_path}.resize", transform["resize"], add_error)
        dest = transform.get("dest")
        if dest is not None and (not isinstance(dest, str) or not dest.strip()):
            add_error(f"{transform_path}.dest", "must be a non-empty string")
        elif dest is not None:
            for message in _template_errors(dest):
                add_error(f"{transform_path}.dest", message)


def _validate_formats(path: str, formats: Any, add_error) -> None:
    if not isinstance(formats, dict):
        add_error(path, "must be a mapping of format name to options")
        return
    for format_name, options in formats.items():
        if options is not None and not isinstance(options, dict):
            add_error(f"{path}.{format_name}", "options must be a mapping")


def _validate_resize(path: str, resize: Any, add_error) -> None:
    if not isinstance(resize, dict):
        add_error(path, "must be a mapping")
        return
    for key in ("width", "height"):
        value = resize.get(key)
        if value is not None and (not isinstance(value, int) or isinstance(value, bool) or value <= 0):
            add_error(f"{path}.{key}", "must be a positive integer")
    if resize.get("width") is None and resize.get("height") is None:
        add_error(path, "needs width or height")
    fit = resize.get("fit")
    if fit is not None and fit not in RESIZE_FITS:
        add_error(f"{path}.fit", f"must be one of {', '.join(RESIZE_FITS)}")


def _template_errors(template: str) -> list[str]:
    messages: list[str] = []
    for match in Template.pattern.finditer(template):
        if match.group("invalid") is not None:
            messages.append(f"invalid placeholder at position {match.start('invalid')} (use $$ for a literal $)")
            continue
        name = match.group("named") or match.group("braced")
        if name is not None and name not in TEMPLATE_VARIABLES:
            messages.append(f"unknown variable ${{{name}}}; allowed: {', '.join(TEMPLATE_VARIABLES)}")
    return messages
