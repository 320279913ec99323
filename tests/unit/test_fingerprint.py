import hashlib
import json

from bronze.models import TransformSpec
from bronze.utils import hash_calc


def test_fingerprint_is_md5_of_canonical_json() -> None:
    transform = TransformSpec(format_name="jpeg", format_options={"quality": 80}, resize={"width": 200})
    payload = {"formatName": "jpeg", "formatOptions": {"quality": 80}, "resize": {"width": 200}}
    expected = hashlib.md5(
        json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    ).hexdigest()

    assert hash_calc.fingerprint_transform(transform) == expected


def test_fingerprint_ignores_key_order() -> None:
    first = TransformSpec("webp", {"quality": 70, "lossless": False}, {"width": 300, "height": 200})
    second = TransformSpec("webp", {"lossless": False, "quality": 70}, {"height": 200, "width": 300})

    assert hash_calc.fingerprint_transform(first) == hash_calc.fingerprint_transform(second)


def test_fingerprint_changes_with_any_setting() -> None:
    base = TransformSpec("jpeg", {}, {"width": 200})
    variants = [
        TransformSpec("webp", {}, {"width": 200}),
        TransformSpec("jpeg", {"quality": 90}, {"width": 200}),
        TransformSpec("jpeg", {}, {"width": 300}),
        TransformSpec("jpeg", {}, None),
    ]

    digests = {hash_calc.fingerprint_transform(item) for item in variants}

    assert hash_calc.fingerprint_transform(base) not in digests
    assert len(digests) == len(variants)


def test_fingerprint_accepts_mapping_and_algorithm() -> None:
    transform = TransformSpec("jpeg")

    from_mapping = hash_calc.fingerprint_transform(transform.to_dict(), "sha256")

    assert from_mapping == hash_calc.fingerprint_transform(transform, "sha256")
    assert len(from_mapping) == 64


def test_generate_op_id_is_stable() -> None:
    first = hash_calc.generate_op_id("GENERATE", "in/a.jpg", "out/a-thumb.jpeg", {"version": "thumb-jpeg"})
    second = hash_calc.generate_op_id("GENERATE", "in\\a.jpg", "out\\a-thumb.jpeg", {"version": "thumb-jpeg"})
    other = hash_calc.generate_op_id("DELETE", "in/a.jpg", "out/a-thumb.jpeg", {"version": "thumb-jpeg"})

    assert first == second
    assert first != other
    assert first.startswith("op_")
    assert len(first) == len("op_") + 16
