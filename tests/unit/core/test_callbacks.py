import threading

import pytest

from linkpulse.core.callbacks import CallbackRunner
from linkpulse.domain.errors import ClassifiedFailure, Result


@pytest.fixture
def callback_runner():
    runner = CallbackRunner()
    yield runner
    runner.close()


async def succeed(value):
    return Result.ok(value)


async def fail_validation():
    return Result.fail(ClassifiedFailure.validation("code must not be blank"))


async def explode():
    raise RuntimeError("unexpected")


def test_run_blocks_for_result(callback_runner: CallbackRunner):
    assert callback_runner.run(succeed(5)).value == 5


def test_submit_invokes_callback_with_result(callback_runner: CallbackRunner):
    received = []
    done = threading.Event()

    def callback(result):
        received.append(result)
        done.set()

    callback_runner.submit(fail_validation(), callback)

    assert done.wait(timeout=5)
    assert not received[0].is_ok
    assert received[0].failure.message == "code must not be blank"


def test_unexpected_exception_stays_on_future(callback_runner: CallbackRunner):
    called = []

    future = callback_runner.submit(explode(), called.append)

    with pytest.raises(RuntimeError):
        future.result(timeout=5)
    assert called == []


def test_closed_runner_refuses_work():
    runner = CallbackRunner()
    runner.close()
    runner.close()

    coro = succeed(1)
    with pytest.raises(RuntimeError):
        runner.run(coro)
    coro.close()
