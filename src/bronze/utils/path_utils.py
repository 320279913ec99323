"""Source globbing, image IDs and destination templating."""

from __future__ import annotations

import glob
import os
from pathlib import Path, PurePosixPath
from string import Template
from typing import Union

from ..config.defaults import FORMAT_EXTS

_GLOB_MAGIC = ("*", "?", "[")

PathLike = Union[str, Path]


def _has_magic(part: str) -> bool:
    return any(char in part for char in _GLOB_MAGIC)


def glob_parent(pattern: str) -> Path:
    """Longest leading directory of `pattern` without glob characters."""
    normalized = pattern.replace("\\", "/")
    parts = normalized.split("/")
    if len(parts) == 1:
        return Path(".")

    static: list[str] = []
    for part in parts[:-1]:
        if _has_magic(part):
            break
        static.append(part)

    if not static:
        return Path(".")
    return Path(os.path.normpath("/".join(static) or "/"))


def expand_sources(pattern: str) -> list[Path]:
    """Files matching `pattern`, sorted so source indexes are stable."""
    matches = glob.glob(pattern, recursive=True)
    return sorted(Path(match) for match in matches if Path(match).is_file())


def image_id_for(source_path: PathLike, basepath: PathLike) -> str:
    """Source path relative to `basepath`, extension stripped, '/' separated."""
    source = Path(source_path)
    try:
        relative = Path(os.path.relpath(source, basepath))
    except ValueError:
        relative = Path(source.name)
    stripped = relative.with_suffix("") if relative.suffix else relative
    return PurePosixPath(*stripped.parts).as_posix()


def source_folder_for(source_path: PathLike, basepath: PathLike) -> str:
    folder = os.path.relpath(Path(source_path).parent, basepath)
    return "" if folder == "." else PurePosixPath(*Path(folder).parts).as_posix()


def fill_template(template: str, **values: object) -> str:
    """Substitute `${name}` variables; unknown variables raise KeyError."""
    return Template(template).substitute({key: str(value) for key, value in values.items()})


def build_output_path(
    dest_folder: PathLike,
    dest_template: str,
    format_name: str,
    *,
    source_name: str,
    source_folder: str,
    transform_name: str,
    source_index: int,
) -> Path:
    relative = fill_template(
        dest_template,
        sourceName=source_name,
        sourceFolder=source_folder,
        transformName=transform_name,
        sourceIndex=source_index,
    )
    without_ext = Path(os.path.normpath(Path(dest_folder) / relative))
    return without_ext.with_name(f"{without_ext.name}.{FORMAT_EXTS[format_name]}")


def same_path(left: PathLike, right: PathLike) -> bool:
    return os.path.normpath(str(left)) == os.path.normpath(str(right))
