import asyncio

from voicecraft.practice.scheduler import LoopScheduler


class Emitter:
    def __init__(self) -> None:
        self.listeners = []

    def subscribe(self, listener):
        self.listeners.append(listener)
        return lambda: self.listeners.remove(listener)

    def emit(self, *args):
        for listener in list(self.listeners):
            listener(*args)


def test_event_trigger_cancels_timer(scheduler):
    emitter = Emitter()
    fired = []
    scheduler.wait_until(
        lambda: fired.append(scheduler.now()),
        delay=5.0,
        events=[(emitter.subscribe, lambda value: value >= 3)],
    )

    emitter.emit(1)
    assert fired == []
    emitter.emit(3)
    assert fired == [0.0]
    assert emitter.listeners == []
    assert scheduler.pending == []

    scheduler.advance(10.0)
    emitter.emit(4)
    assert fired == [0.0]


def test_timer_trigger_unsubscribes_events(scheduler):
    emitter = Emitter()
    fired = []
    scheduler.wait_until(lambda: fired.append("timer"), delay=2.0, events=[(emitter.subscribe, None)])

    scheduler.advance(1.0)
    assert fired == []
    scheduler.advance(1.0)
    assert fired == ["timer"]
    assert emitter.listeners == []


def test_cancel_all_clears_everything(scheduler):
    emitter = Emitter()
    fired = []

    async def work():
        fired.append("task ran")
        return 1

    scheduler.after(1.0, lambda: fired.append("timer"))
    scheduler.wait_until(lambda: fired.append("event"), events=[(emitter.subscribe, None)])
    scheduler.run(work(), lambda result, error: fired.append(result))
    assert len(scheduler.pending) == 3

    scheduler.cancel_all()
    scheduler.advance(5.0)
    emitter.emit()
    scheduler.run_tasks()

    assert fired == []
    assert scheduler.pending == []
    assert emitter.listeners == []


def test_run_reports_result_and_error(scheduler):
    results = []

    async def ok():
        return "audio"

    async def boom():
        raise ValueError("nope")

    scheduler.run(ok(), lambda result, error: results.append((result, error)))
    scheduler.run(boom(), lambda result, error: results.append((result, type(error))))
    scheduler.run_tasks()

    assert results == [("audio", None), (None, ValueError)]


def test_loop_scheduler_runs_timers_and_tasks():
    async def main():
        scheduler = LoopScheduler()
        seen = []

        async def fetch():
            await asyncio.sleep(0)
            return 42

        scheduler.after(0.01, lambda: seen.append("timer"))
        scheduler.run(fetch(), lambda result, error: seen.append(result))
        cancelled = scheduler.after(0.01, lambda: seen.append("cancelled"))
        cancelled.cancel()
        await asyncio.sleep(0.05)
        return seen, scheduler.pending

    seen, pending = asyncio.run(main())
    assert sorted(map(str, seen)) == ["42", "timer"]
    assert pending == []


def test_loop_scheduler_cancel_all_stops_tasks():
    async def main():
        scheduler = LoopScheduler()
        seen = []

        async def slow():
            await asyncio.sleep(1)
            return "late"

        scheduler.run(slow(), lambda result, error: seen.append(result))
        await asyncio.sleep(0)
        scheduler.cancel_all()
        await asyncio.sleep(0.01)
        return seen

    assert asyncio.run(main()) == []
