from __future__ import annotations

import queue
import threading
from dataclasses import dataclass, field
from typing import Callable, Generic, Iterable, List, Optional, Tuple, TypeVar

T = TypeVar("T")

_DONE = object()


@dataclass
class FanOutResult(Generic[T]):
    submitted: int = 0
    succeeded: List[T] = field(default_factory=list)
    failed: List[Tuple[T, Exception]] = field(default_factory=list)
    skipped: List[T] = field(default_factory=list)
    stopped: bool = False

    @property
    def ok(self) -> bool:
        return not self.failed


def fan_out(
    items: Iterable[T],
    worker: Callable[[T], object],
    *,
    workers: int,
    stop_on_error: bool = True,
    on_submit: Optional[Callable[[int], None]] = None,
    name: str = "fan-out",
) -> FanOutResult[T]:
    """Run ``worker`` over ``items`` on a fixed pool of threads.

    A single producer (the calling thread) feeds a queue holding at most
    ``workers`` items, so it blocks while every worker is busy. Returns once
    every worker has exited. With ``stop_on_error`` the first failure stops
    submission and items still queued are skipped, not attempted.
    """
    n_workers = max(1, int(workers))
    q: "queue.Queue[object]" = queue.Queue(maxsize=n_workers)
    stop = threading.Event()
    lock = threading.Lock()
    result: FanOutResult[T] = FanOutResult()

    def _run() -> None:
        while True:
            item = q.get()
            if item is _DONE:
                return
            if stop.is_set():
                with lock:
                    result.skipped.append(item)  # type: ignore[arg-type]
                continue
            try:
                worker(item)  # type: ignore[arg-type]
            except Exception as e:
                with lock:
                    result.failed.append((item, e))  # type: ignore[arg-type]
                if stop_on_error:
                    stop.set()
                continue
            with lock:
                result.succeeded.append(item)  # type: ignore[arg-type]

    threads = [threading.Thread(target=_run, name=f"{name}-{i}", daemon=True) for i in range(n_workers)]
    for t in threads:
        t.start()

    try:
        for item in items:
            if stop.is_set():
                break
            q.put(item)
            result.submitted += 1
            if on_submit is not None:
                on_submit(result.submitted)
    finally:
        for _ in threads:
            q.put(_DONE)
        for t in threads:
            t.join()

    result.stopped = stop.is_set()
    return result
