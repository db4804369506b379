# tests/splits/test_execution.py
from __future__ import annotations

import threading
import time
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor

import pytest

from region_prep.splits.execution import describe_executor, get_executor_class, run_tasks


def _square(x):
    return x * x


def test_executor_kinds():
    assert get_executor_class("processes") is ProcessPoolExecutor
    assert get_executor_class("threads") is ThreadPoolExecutor
    assert get_executor_class("serial") is None
    with pytest.raises(ValueError):
        get_executor_class("gpu")


def test_describe_executor():
    assert describe_executor(None) == "serial"
    assert describe_executor(ThreadPoolExecutor) == "threads"
    assert describe_executor(ProcessPoolExecutor) == "processes"


@pytest.mark.parametrize("kind", ["serial", "threads"])
def test_results_in_submission_order(kind):
    def slow_echo(i):
        time.sleep(0.001 * (5 - i))
        return i

    out = run_tasks(slow_echo, [(i,) for i in range(5)], executor=kind,
                    workers=4, desc="echo", show_progress=False)
    assert out == [0, 1, 2, 3, 4]


def test_process_pool_runs_module_functions():
    out = run_tasks(_square, [(i,) for i in range(6)], executor="processes",
                    workers=2, desc="square", show_progress=False)
    assert out == [0, 1, 4, 9, 16, 25]


def test_no_tasks():
    assert run_tasks(_square, [], executor="threads", workers=2, desc="none") == []


def test_first_failure_reraised_unchanged_and_rest_cancelled():
    boom = KeyError("partition 3")
    started = []
    lock = threading.Lock()

    def task(i):
        with lock:
            started.append(i)
        if i == 0:
            raise boom
        time.sleep(0.05)
        return i

    with pytest.raises(KeyError) as info:
        run_tasks(task, [(i,) for i in range(50)], executor="threads",
                  workers=1, desc="fail", show_progress=False)

    assert info.value is boom
    assert len(started) < 50


def test_serial_failure_stops_immediately():
    seen = []

    def task(i):
        seen.append(i)
        if i == 1:
            raise ValueError("bad split")
        return i

    with pytest.raises(ValueError, match="bad split"):
        run_tasks(task, [(0,), (1,), (2,)], executor="serial", workers=1,
                  desc="serial", show_progress=False)
    assert seen == [0, 1]
