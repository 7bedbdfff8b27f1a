import asyncio

import pytest

from exam_core.autosave import AutoSaver


class Recorder:
    def __init__(self, fail: bool = False):
        self.count = 0
        self.fail = fail

    async def __call__(self) -> None:
        self.count += 1
        if self.fail:
            raise RuntimeError("save failed")


def test_interval_must_be_positive() -> None:
    with pytest.raises(ValueError):
        AutoSaver(Recorder(), interval=0)


async def test_saves_periodically_until_stopped() -> None:
    save = Recorder()
    saver = AutoSaver(save, interval=0.01)

    saver.start()
    await asyncio.sleep(0.065)
    await saver.stop()
    count = save.count

    assert count >= 2
    assert not saver.running
    await asyncio.sleep(0.03)
    assert save.count == count


async def test_stops_when_attempt_is_no_longer_active() -> None:
    save = Recorder()
    active = {"value": True}
    saver = AutoSaver(save, interval=0.01, is_active=lambda: active["value"])

    saver.start()
    await asyncio.sleep(0.035)
    active["value"] = False
    await asyncio.sleep(0.03)

    assert not saver.running
    count = save.count
    await asyncio.sleep(0.03)
    assert save.count == count


async def test_skips_ticks_while_busy() -> None:
    save = Recorder()
    saver = AutoSaver(save, interval=0.01, is_busy=lambda: True)

    saver.start()
    await asyncio.sleep(0.05)
    await saver.stop()

    assert save.count == 0


async def test_save_errors_do_not_stop_the_loop() -> None:
    save = Recorder(fail=True)
    saver = AutoSaver(save, interval=0.01)

    saver.start()
    await asyncio.sleep(0.065)
    assert saver.running
    await saver.stop()

    assert save.count >= 2
    assert saver.ticks == save.count


async def test_restart_replaces_previous_task() -> None:
    save = Recorder()
    saver = AutoSaver(save, interval=0.01)

    saver.start()
    first = saver._task
    saver.start()
    await asyncio.sleep(0)

    assert first.cancelled() or first.done()
    assert saver.running
    await saver.stop()


async def test_stop_before_start_is_noop() -> None:
    saver = AutoSaver(Recorder(), interval=0.01)
    await saver.stop()
    assert not saver.running
