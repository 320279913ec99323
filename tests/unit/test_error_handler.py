from concurrent.futures import ThreadPoolExecutor

from bronze.models import ErrorLevel
from bronze.utils.error_handler import ErrorHandler


def test_error_handler_levels() -> None:
    handler = ErrorHandler()
    handler.add_info("I-NOTE", "note")
    handler.add_warning("W-EXT-CHANGED", "a: extension changed", file_path="in/a.png")
    handler.add_fatal("E-GENERATE", "boom", file_path="out/a.jpeg", operation="GENERATE")

    assert len(handler.get_by_level(ErrorLevel.RECOVERABLE)) == 1
    assert handler.get_by_level(ErrorLevel.FATAL)[0].operation == "GENERATE"
    assert handler.has_code("W-EXT-CHANGED")
    assert not handler.has_code("W-SNAPSHOT-ENTRY")
    assert handler.to_dicts()[2] == {
        "code": "E-GENERATE",
        "level": "E",
        "message": "boom",
        "file_path": "out/a.jpeg",
        "operation": "GENERATE",
    }


def test_error_handler_from_threads() -> None:
    handler = ErrorHandler()
    with ThreadPoolExecutor(max_workers=4) as pool:
        list(pool.map(lambda index: handler.add_warning("W-TEST", str(index)), range(100)))
    assert len(handler.errors) == 100
