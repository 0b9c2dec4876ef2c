"""
Bounded-concurrency task runner for YgoProxy2Pdf.
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence, TypeVar

T = TypeVar("T")

class RateLimiter:
    """
    Makes every call to wait() sleep at least min_interval seconds, and keeps the resulting
    starts at least min_interval apart across all threads.
    """
    def __init__(self, min_interval: float = 0.1):
        self.min_interval = min_interval
        self.last_start_time: Optional[float] = None
        self.lock = threading.Lock()

    def wait(self):
        with self.lock:
            current_time = time.monotonic()
            earliest = current_time if self.last_start_time is None else max(current_time, self.last_start_time)
            start_time = earliest + self.min_interval
            self.last_start_time = start_time
        wait_time = start_time - time.monotonic()
        if wait_time > 0:
            time.sleep(wait_time)

class TaskQueue:
    """Hands out task indices in order to whichever worker asks next."""
    def __init__(self, total: int):
        self.total = total
        self.next_index = 0
        self.lock = threading.Lock()

    def take(self) -> Optional[int]:
        with self.lock:
            if self.next_index >= self.total: return None
            current = self.next_index; self.next_index += 1
            return current

def run_with_concurrency(tasks: Sequence[Callable[[], T]], concurrency: int, min_delay_seconds: float = 0.0) -> List[T]:
    """
    Runs every task with at most `concurrency` of them in flight and returns the results in task order.
    Idle workers pull the next unstarted task. With min_delay_seconds > 0, every task but the first waits
    at least that long before it starts, and starts stay that far apart over the whole batch.
    """
    total = len(tasks)
    results: List[T] = [None] * total  # type: ignore[list-item]
    if total == 0: return results

    limit = max(1, int(concurrency or 1))
    queue = TaskQueue(total)
    limiter = RateLimiter(min_delay_seconds) if min_delay_seconds > 0 else None

    def worker():
        while True:
            current = queue.take()
            if current is None: return
            if limiter and current > 0: limiter.wait()
            results[current] = tasks[current]()

    num_workers = min(limit, total)
    with ThreadPoolExecutor(max_workers=num_workers) as executor:
        futures = [executor.submit(worker) for _ in range(num_workers)]
        for future in futures: future.result()
    return results
