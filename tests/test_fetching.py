import logging
import threading
import time

from smb_pulse.fetching import fetch_all


def test_fetch_all_returns_rows_by_name_in_query_order() -> None:
    rows = fetch_all(
        {
            "b": lambda: [1, 2],
            "a": lambda: ["x"],
        }
    )

    assert rows == {"b": [1, 2], "a": ["x"]}
    assert list(rows) == ["b", "a"]


def test_failing_query_yields_empty_rows(caplog) -> None:
    def boom():
        raise RuntimeError("db down")

    with caplog.at_level(logging.WARNING, logger="smb_pulse.fetching"):
        rows = fetch_all({"ok": lambda: [1], "bad": boom})

    assert rows == {"ok": [1], "bad": []}
    assert "bad" in caplog.text


def test_none_result_yields_empty_rows() -> None:
    assert fetch_all({"q": lambda: None}) == {"q": []}


def test_queries_run_concurrently() -> None:
    """Two queries waiting on each other only finish if run in parallel."""
    barrier = threading.Barrier(2, timeout=5)

    def query(value):
        def run():
            barrier.wait()
            return [value]

        return run

    rows = fetch_all({"a": query(1), "b": query(2)}, max_workers=2)

    assert rows == {"a": [1], "b": [2]}


def test_slow_query_times_out_to_empty_rows() -> None:
    release = threading.Event()

    def slow():
        release.wait(5)
        return ["late"]

    start = time.monotonic()
    rows = fetch_all({"fast": lambda: [1], "slow": slow}, timeout=0.2)
    elapsed = time.monotonic() - start
    release.set()

    assert rows == {"fast": [1], "slow": []}
    assert elapsed < 2


def test_no_queries() -> None:
    assert fetch_all({}) == {}
