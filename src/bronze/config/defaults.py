"""Default settings and output constants."""

ALLOWED_FORMATS = ("jpeg", "webp")
FORMAT_EXTS = {"jpeg": "jpeg", "webp": "webp"}

TEMPLATE_VARIABLES = ("sourceName", "sourceFolder", "transformName", "sourceIndex")
DEFAULT_TRANSFORM_DEST = "${sourceName}-${transformName}"
DEFAULT_FORMATS = {"jpeg": {}}

RESIZE_FITS = ("cover", "contain", "fill", "inside", "outside")

DEFAULT_CONFIG = {
    "infoFile": None,
    "dry": False,
    "profiles": {},
    "execution": {
        "max_workers": 4,
        "source_cache_size": 8,
    },
    "retry": {
        "max_retries": 2,
        "backoff_base_sec": 0.2,
        "backoff_cap_sec": 2.0,
    },
    "hash": {
        "algorithm": "md5",
    },
    "logging": {
        "file": None,
    },
}
