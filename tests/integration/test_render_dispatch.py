from __future__ import annotations

import asyncio

import pytest

from sheetexport.dispatcher import RenderDispatcher
from sheetexport.errors import RenderError, WorkerCrashError
from tests.helpers import crash_without_reply, hang_forever, reply_with_error


async def test_render_in_worker_returns_xlsx(employee_rows, employee_layout, open_xlsx) -> None:
    dispatcher = RenderDispatcher(timeout_s=60, sheet_title="Employees")

    payload = await dispatcher.render(employee_rows, employee_layout)

    assert payload.startswith(b"PK")
    ws = open_xlsx(payload)
    assert ws.title == "Employees"
    assert ws["A1"].value == "Name"
    assert ws["C5"].value == "=SUBTOTAL(9,C2:C4)"
    assert dispatcher.live_workers == 0


async def test_explicit_worker_error_is_a_render_error(employee_rows, employee_layout) -> None:
    dispatcher = RenderDispatcher(timeout_s=60, target=reply_with_error)

    with pytest.raises(RenderError, match="boom"):
        await dispatcher.render(employee_rows, employee_layout)


async def test_builder_failure_inside_worker_is_reported_as_render_error(employee_rows) -> None:
    dispatcher = RenderDispatcher(timeout_s=60)

    with pytest.raises(RenderError, match="layout is empty"):
        await dispatcher.render(employee_rows, ())


async def test_worker_exit_without_reply_is_a_crash(employee_rows, employee_layout) -> None:
    dispatcher = RenderDispatcher(timeout_s=60, target=crash_without_reply)

    with pytest.raises(WorkerCrashError) as exc_info:
        await dispatcher.render(employee_rows, employee_layout)

    assert exc_info.value.exit_code == 3
    assert exc_info.value.timed_out is False
    assert not isinstance(exc_info.value, RenderError)
    assert dispatcher.live_workers == 0


async def test_timeout_terminates_the_worker(employee_rows, employee_layout) -> None:
    dispatcher = RenderDispatcher(timeout_s=1.0, target=hang_forever)

    with pytest.raises(WorkerCrashError) as exc_info:
        await dispatcher.render(employee_rows, employee_layout)

    assert exc_info.value.timed_out is True
    assert exc_info.value.exit_code is not None
    assert dispatcher.live_workers == 0


async def test_concurrent_renders_are_isolated(employee_layout, open_xlsx) -> None:
    dispatcher = RenderDispatcher(timeout_s=60, max_concurrent=2)
    batches = [[{"name": f"user{i}", "salary": i}] for i in range(3)]

    payloads = await asyncio.gather(*(dispatcher.render(rows, employee_layout) for rows in batches))

    names = [open_xlsx(p)["A2"].value for p in payloads]
    assert names == ["user0", "user1", "user2"]


async def test_closed_dispatcher_refuses_work(employee_rows, employee_layout) -> None:
    dispatcher = RenderDispatcher(timeout_s=60)
    await dispatcher.close()

    with pytest.raises(RenderError):
        await dispatcher.render(employee_rows, employee_layout)


async def _wait_for_live_workers(dispatcher: RenderDispatcher, count: int, timeout_s: float = 30.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout_s
    while dispatcher.live_workers != count:
        assert loop.time() < deadline, f"expected {count} live worker(s), have {dispatcher.live_workers}"
        await asyncio.sleep(0.01)


async def test_caller_waiting_for_a_slot_does_not_start_after_close(employee_rows, employee_layout) -> None:
    dispatcher = RenderDispatcher(timeout_s=60, max_concurrent=1, target=hang_forever)

    running = asyncio.create_task(dispatcher.render(employee_rows, employee_layout))
    await _wait_for_live_workers(dispatcher, 1)
    waiting = asyncio.create_task(dispatcher.render(employee_rows, employee_layout))
    await asyncio.sleep(0.05)

    await dispatcher.close()

    with pytest.raises(WorkerCrashError):
        await running
    with pytest.raises(RenderError, match="closed"):
        await waiting
    assert dispatcher.live_workers == 0
