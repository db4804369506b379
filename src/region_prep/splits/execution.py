# splits/execution.py
"""Executor selection and fail-fast task fan-out."""

from __future__ import annotations

import logging
import multiprocessing as mp
from concurrent.futures import Future, ProcessPoolExecutor, ThreadPoolExecutor, as_completed
from typing import Any, Callable, Dict, List, Optional, Sequence, Type, Union

from setproctitle import setproctitle
from tqdm import tqdm

from region_prep.config import ExecutorKind

logger = logging.getLogger(__name__)

ExecutorClass = Optional[Union[Type[ThreadPoolExecutor], Type[ProcessPoolExecutor]]]

__all__ = ["get_executor_class", "describe_executor", "label_worker", "run_tasks"]


def get_executor_class(kind: ExecutorKind) -> ExecutorClass:
    """
    Map an executor kind to a pool class.

    "serial" maps to None: tasks run in the driver thread, which is useful
    for debugging with breakpoints.
    """
    if kind == "processes":
        return ProcessPoolExecutor
    if kind == "threads":
        return ThreadPoolExecutor
    if kind == "serial":
        return None
    raise ValueError(f"Unknown executor kind: {kind!r}")


def describe_executor(executor_class: ExecutorClass) -> str:
    """Convert an executor class into a readable policy name."""
    if executor_class is None:
        return "serial"
    if executor_class is ThreadPoolExecutor:
        return "threads"
    return "processes"


def label_worker(title: str) -> None:
    """Set the process title, but only inside pool worker processes."""
    if mp.parent_process() is None:
        return
    try:
        setproctitle(title)
    except Exception:  # pragma: no cover
        pass


def run_tasks(
    fn: Callable[..., Any],
    task_args: Sequence[tuple],
    *,
    executor: ExecutorKind,
    workers: int,
    desc: str,
    show_progress: bool = True,
) -> List[Any]:
    """
    Run fn(*args) for every args tuple; return results in submission order.

    The first task failure cancels every task not yet started, waits for
    running ones, and is re-raised unchanged.
    """
    if not task_args:
        return []

    executor_class = get_executor_class(executor)
    results: List[Any] = [None] * len(task_args)

    with tqdm(total=len(task_args), desc=desc, unit="tasks",
              colour="blue", disable=not show_progress) as pbar:
        if executor_class is None:
            for idx, args in enumerate(task_args):
                results[idx] = fn(*args)
                pbar.update(1)
            return results

        max_workers = max(1, min(workers, len(task_args)))
        with executor_class(max_workers=max_workers) as pool:
            futures: Dict[Future, int] = {
                pool.submit(fn, *args): idx for idx, args in enumerate(task_args)
            }
            try:
                for fut in as_completed(futures):
                    idx = futures[fut]
                    results[idx] = fut.result()
                    pbar.update(1)
            except BaseException as exc:
                logger.error("%s: task failed, cancelling remaining tasks: %s", desc, exc)
                pool.shutdown(wait=True, cancel_futures=True)
                raise

    return results
