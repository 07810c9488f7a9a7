"""Unit tests for the default nonce source."""

import threading
from itertools import count

from kraken_client.core.nonce import WallClockNonceSource, utc_ticks


def test_utc_ticks_is_in_the_expected_range() -> None:
    # 2020-01-01 in 100 ns ticks since 0001-01-01
    assert utc_ticks() > 637_134_336_000_000_000


def test_follows_the_clock_when_it_advances() -> None:
    ticks = count(100, 10)
    source = WallClockNonceSource(clock=lambda: next(ticks))

    assert [source(), source(), source()] == [100, 110, 120]


def test_strictly_increases_when_clock_stalls() -> None:
    source = WallClockNonceSource(clock=lambda: 500)

    assert [source(), source(), source()] == [500, 501, 502]
    assert source.last_issued == 502


def test_never_goes_backwards_when_clock_is_adjusted() -> None:
    values = iter([1_000, 900, 1_500])
    source = WallClockNonceSource(clock=lambda: next(values))

    assert [source(), source(), source()] == [1_000, 1_001, 1_500]


def test_unique_across_threads() -> None:
    source = WallClockNonceSource(clock=lambda: 7)
    issued: list[int] = []
    lock = threading.Lock()

    def worker() -> None:
        for _ in range(250):
            value = source()
            with lock:
                issued.append(value)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(issued) == 1_000
    assert len(set(issued)) == 1_000
