# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openoai-python/LICENSE
# ==============================================================================

from __future__ import annotations

from datetime import timedelta
from pathlib import Path
import threading

import pytest

from openoai.tokens import FileTokenStore, MemoryTokenStore, TokenNotFound, TokenStore
from openoai.types import Continuation
from tests.helpers import BASE_TIME, FakeClock


@pytest.fixture(params=["memory", "file"])
def store_factory(request, tmp_path: Path):
    def factory(**kwargs):
        if request.param == "memory":
            return MemoryTokenStore(**kwargs)
        return FileTokenStore(tmp_path / "tokens", **kwargs)

    return factory


def test_stores_satisfy_protocol(tmp_path: Path) -> None:
    assert isinstance(MemoryTokenStore(), TokenStore)
    assert isinstance(FileTokenStore(tmp_path), TokenStore)


def test_issue_then_resolve_once(store_factory) -> None:
    clock = FakeClock()
    store = store_factory(valid=timedelta(hours=1), clock=clock)

    issued = store.issue(50, "oai_dc")

    assert issued.expires_at == BASE_TIME + timedelta(hours=1)
    assert store.resolve(issued.value) == Continuation(cursor=50, metadata_prefix="oai_dc", from_=None, until=None)
    with pytest.raises(TokenNotFound):
        store.resolve(issued.value)


def test_continuation_keeps_bounds(store_factory) -> None:
    store = store_factory()

    issued = store.issue(3, "oai_dc", "2020-01-01", "2020-02-01")

    continuation = store.resolve(issued.value)
    assert (continuation.from_, continuation.until) == ("2020-01-01", "2020-02-01")


def test_tokens_are_distinct(store_factory) -> None:
    store = store_factory()

    values = {store.issue(index, "oai_dc").value for index in range(20)}

    assert len(values) == 20


def test_expired_token_is_rejected_and_removed(store_factory) -> None:
    clock = FakeClock()
    store = store_factory(valid=timedelta(minutes=10), clock=clock)
    issued = store.issue(3, "oai_dc")

    clock.advance(minutes=10, seconds=1)

    with pytest.raises(TokenNotFound):
        store.resolve(issued.value)
    clock.now = BASE_TIME
    with pytest.raises(TokenNotFound):
        store.resolve(issued.value)


def test_token_valid_until_expiry_instant(store_factory) -> None:
    clock = FakeClock()
    store = store_factory(valid=timedelta(minutes=10), clock=clock)
    issued = store.issue(3, "oai_dc")

    clock.advance(minutes=10)

    assert store.resolve(issued.value).cursor == 3


@pytest.mark.parametrize("token", ["", "../etc/passwd", "a b", "x" * 129])
def test_malformed_tokens_rejected(store_factory, token: str) -> None:
    with pytest.raises(TokenNotFound):
        store_factory().resolve(token)


def test_purge_expired(store_factory) -> None:
    clock = FakeClock()
    store = store_factory(valid=timedelta(minutes=5), clock=clock)
    old = store.issue(1, "oai_dc")
    clock.advance(minutes=4)
    fresh = store.issue(2, "oai_dc")
    clock.advance(minutes=2)

    assert store.purge_expired() == 1
    with pytest.raises(TokenNotFound):
        store.resolve(old.value)
    assert store.resolve(fresh.value).cursor == 2


def test_validity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        MemoryTokenStore(valid=timedelta(0))


def test_concurrent_resolve_has_one_winner(store_factory) -> None:
    store = store_factory()
    issued = store.issue(9, "oai_dc")
    barrier = threading.Barrier(8)
    winners: list[Continuation] = []
    losers: list[TokenNotFound] = []
    lock = threading.Lock()

    def worker() -> None:
        barrier.wait()
        try:
            result = store.resolve(issued.value)
        except TokenNotFound as exc:
            with lock:
                losers.append(exc)
        else:
            with lock:
                winners.append(result)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(winners) == 1
    assert len(losers) == 7


def test_file_store_layout(tmp_path: Path) -> None:
    store = FileTokenStore(tmp_path, prefix="oai2-")

    issued = store.issue(4, "oai_dc")

    assert store.path_for(issued.value).exists()
    assert [path.name for path in tmp_path.iterdir()] == [f"oai2-{issued.value}"]
    store.resolve(issued.value)
    assert list(tmp_path.iterdir()) == []


def test_file_store_discards_corrupt_file(tmp_path: Path) -> None:
    store = FileTokenStore(tmp_path)
    store.path_for("deadbeef").write_text("{not json", encoding="utf-8")

    with pytest.raises(TokenNotFound):
        store.resolve("deadbeef")
    assert list(tmp_path.iterdir()) == []


def test_file_store_shared_between_instances(tmp_path: Path) -> None:
    issued = FileTokenStore(tmp_path).issue(6, "oai_dc")

    assert FileTokenStore(tmp_path).resolve(issued.value).cursor == 6


def test_purge_leaves_foreign_entries_alone(tmp_path: Path) -> None:
    clock = FakeClock()
    store = FileTokenStore(tmp_path, valid=timedelta(minutes=5), clock=clock)
    (tmp_path / "oai2-notes.txt").write_text("unrelated", encoding="utf-8")
    (tmp_path / "oai2-cache").mkdir()
    (tmp_path / "oai2-unrelated").write_text("not a token", encoding="utf-8")
    expired = store.issue(1, "oai_dc")
    clock.advance(minutes=6)

    assert store.purge_expired() == 1

    assert not store.path_for(expired.value).exists()
    assert (tmp_path / "oai2-notes.txt").read_text(encoding="utf-8") == "unrelated"
    assert (tmp_path / "oai2-cache").is_dir()
    assert (tmp_path / "oai2-unrelated").exists()


def test_resolve_ignores_directory_named_like_a_token(tmp_path: Path) -> None:
    store = FileTokenStore(tmp_path)
    (tmp_path / "oai2-cache").mkdir()

    with pytest.raises(TokenNotFound):
        store.resolve("cache")
    assert (tmp_path / "oai2-cache").is_dir()


def test_abandoned_file_token_reaped_by_later_issue(tmp_path: Path) -> None:
    clock = FakeClock()
    store = FileTokenStore(tmp_path, valid=timedelta(minutes=10), clock=clock)
    abandoned = store.issue(3, "oai_dc")

    clock.advance(hours=1)
    current = store.issue(6, "oai_dc")

    assert not store.path_for(abandoned.value).exists()
    assert store.path_for(current.value).exists()


def test_abandoned_file_token_reaped_by_later_resolve(tmp_path: Path) -> None:
    clock = FakeClock()
    store = FileTokenStore(tmp_path, valid=timedelta(minutes=10), clock=clock)
    abandoned = store.issue(3, "oai_dc")

    clock.advance(hours=1)
    with pytest.raises(TokenNotFound):
        store.resolve("0123456789abcdef")

    assert list(tmp_path.iterdir()) == []
    assert not store.path_for(abandoned.value).exists()


def test_file_sweeps_are_rate_limited(tmp_path: Path) -> None:
    clock = FakeClock()
    store = FileTokenStore(tmp_path, valid=timedelta(minutes=1), clock=clock, purge_interval=timedelta(minutes=10))
    first = store.issue(1, "oai_dc")

    clock.advance(minutes=2)
    store.issue(2, "oai_dc")
    assert store.path_for(first.value).exists()

    clock.advance(minutes=9)
    store.issue(3, "oai_dc")
    assert not store.path_for(first.value).exists()


def test_memory_store_reaps_on_issue() -> None:
    clock = FakeClock()
    store = MemoryTokenStore(valid=timedelta(minutes=10), clock=clock)
    store.issue(3, "oai_dc")

    clock.advance(hours=1)
    store.issue(6, "oai_dc")

    assert len(store) == 1
