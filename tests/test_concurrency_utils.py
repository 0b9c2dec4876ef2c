import threading
import time

import pytest

from concurrency_utils import RateLimiter, TaskQueue, run_with_concurrency

class InFlightCounter:
    def __init__(self):
        self.current = 0
        self.peak = 0
        self.lock = threading.Lock()

    def task(self, value, duration=0.02):
        def run():
            with self.lock:
                self.current += 1; self.peak = max(self.peak, self.current)
            time.sleep(duration)
            with self.lock: self.current -= 1
            return value
        return run

def test_results_keep_task_order():
    # Later tasks finish first
    tasks = [(lambda i=i: (time.sleep(0.01 * (5 - i)), i)[1]) for i in range(6)]
    assert run_with_concurrency(tasks, 3) == list(range(6))

@pytest.mark.parametrize("limit", [1, 2, 4])
def test_in_flight_tasks_never_exceed_limit(limit):
    counter = InFlightCounter()
    results = run_with_concurrency([counter.task(i) for i in range(10)], limit)
    assert results == list(range(10))
    assert 1 <= counter.peak <= limit

def test_zero_concurrency_runs_one_at_a_time():
    counter = InFlightCounter()
    assert run_with_concurrency([counter.task(i, 0.005) for i in range(4)], 0) == [0, 1, 2, 3]
    assert counter.peak == 1

def test_empty_task_list():
    assert run_with_concurrency([], 4) == []

def test_min_delay_spaces_task_starts():
    def task():
        return None
    t0 = time.monotonic()
    run_with_concurrency([task] * 5, 5, min_delay_seconds=0.05)
    assert time.monotonic() - t0 >= 4 * 0.05 - 0.01

def test_single_task_is_not_delayed():
    t0 = time.monotonic()
    assert run_with_concurrency([lambda: "only"], 2, min_delay_seconds=1.0) == ["only"]
    assert time.monotonic() - t0 < 0.5

def test_task_exception_propagates():
    def boom():
        raise RuntimeError("boom")
    with pytest.raises(RuntimeError, match="boom"):
        run_with_concurrency([lambda: 1, boom, lambda: 3], 2)

def test_task_queue_hands_out_each_index_once():
    queue = TaskQueue(3)
    assert [queue.take(), queue.take(), queue.take(), queue.take()] == [0, 1, 2, None]

def test_min_delay_applies_even_when_tasks_are_slow():
    spans = []
    def slow_task():
        start = time.monotonic(); time.sleep(0.2); spans.append((start, time.monotonic()))
    run_with_concurrency([slow_task] * 3, 1, min_delay_seconds=0.1)
    idle_gaps = [next_start - end for (_, end), (next_start, _) in zip(spans, spans[1:])]
    assert len(idle_gaps) == 2
    assert all(gap >= 0.1 - 0.005 for gap in idle_gaps)

def test_rate_limiter_waits_at_least_interval():
    limiter = RateLimiter(0.05)
    t0 = time.monotonic()
    limiter.wait()
    assert time.monotonic() - t0 >= 0.05 - 0.005
