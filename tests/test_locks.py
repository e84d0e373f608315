from __future__ import annotations

import threading

import pytest

from opsforge.infra.locks import KeyedLocks, LockTimeout


def test_entry_is_dropped_after_release() -> None:
    locks = KeyedLocks(timeout=1)

    with locks.hold(7):
        assert len(locks) == 1

    assert len(locks) == 0


def test_entry_is_dropped_after_timeout() -> None:
    locks = KeyedLocks(timeout=0.05)

    with locks.hold(7):
        with pytest.raises(LockTimeout):
            with locks.hold(7):
                pass
        assert len(locks) == 1

    assert len(locks) == 0


def test_waiter_keeps_the_entry_alive() -> None:
    locks = KeyedLocks(timeout=5)
    entered = threading.Event()
    done = threading.Event()

    def _wait_then_hold() -> None:
        entered.set()
        with locks.hold(7):
            done.set()

    with locks.hold(7):
        waiter = threading.Thread(target=_wait_then_hold)
        waiter.start()
        entered.wait(timeout=5)
        assert not done.is_set()
    waiter.join(timeout=5)

    assert done.is_set()
    assert len(locks) == 0


def test_keys_do_not_block_each_other() -> None:
    locks = KeyedLocks(timeout=0.05)

    with locks.hold(1), locks.hold(2):
        assert len(locks) == 2
