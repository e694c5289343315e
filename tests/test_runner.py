import anyio
import pytest
from structlog.testing import capture_logs

from chatcmd.commands import Command, CommandRegistry, CommandRunner
from tests.fakes import FakeMessage


class BrokenErrorReplyMessage(FakeMessage):
    async def reply_system_error(self, error: BaseException | str) -> None:
        raise RuntimeError("transport down")


def _boom(message, args):
    raise ValueError("boom")


def test_exact_keyword_beats_alias_on_other_command(
    registry: CommandRegistry, runner: CommandRunner
) -> None:
    aliased = registry.create("ship").alias("deploy")
    exact = registry.create("deploy")

    assert runner.resolve_command(FakeMessage("deploy now")) is exact
    assert runner.resolve_command(FakeMessage("ship now")) is aliased


def test_exact_keyword_beats_phrase_on_earlier_command(
    registry: CommandRegistry, runner: CommandRunner
) -> None:
    registry.create("status report").is_phrase()
    exact = registry.create("status")

    assert runner.resolve_command(FakeMessage("status report please")) is exact


def test_falls_back_to_second_pass(
    registry: CommandRegistry, runner: CommandRunner
) -> None:
    phrase = registry.create("what time").is_phrase()

    assert runner.resolve_command(FakeMessage("What time is it")) is phrase


@pytest.mark.anyio
async def test_unmatched_message_is_a_silent_noop(
    registry: CommandRegistry, runner: CommandRunner
) -> None:
    registry.create("ping", lambda message, args: "pong").alias("p")
    registry.create("hello there").is_phrase()
    message = FakeMessage("nothing to see here")

    with capture_logs() as logs:
        outcomes = await runner.handle(message)

    assert outcomes == ("noop",)
    assert message.reply_count == 0
    assert not [entry for entry in logs if entry["log_level"] == "error"]


@pytest.mark.anyio
async def test_empty_message_is_a_noop(
    registry: CommandRegistry, runner: CommandRunner
) -> None:
    registry.create("ping", lambda message, args: "pong")
    message = FakeMessage("   ")

    assert await runner.handle(message) == ("noop",)
    assert message.reply_count == 0


@pytest.mark.anyio
async def test_handle_runs_resolved_command(
    registry: CommandRegistry, runner: CommandRunner
) -> None:
    registry.create("echo", lambda message, args: " ".join(args))
    message = FakeMessage("echo hello world")

    assert await runner.handle(message) == ("completed",)
    assert message.replies == ["hello world"]


@pytest.mark.anyio
async def test_failure_is_isolated_to_its_sub_message(
    registry: CommandRegistry, runner: CommandRunner
) -> None:
    registry.create("ok", lambda message, args: "fine")
    registry.create("fail", _boom)
    first = FakeMessage("ok 1")
    second = FakeMessage("fail")
    third = FakeMessage("ok 3")
    parent = FakeMessage("batch", sub_messages=[first, second, third])

    with capture_logs() as logs:
        outcomes = await runner.handle(parent)

    assert outcomes == ("completed", "failed", "completed")
    assert first.replies == ["fine"]
    assert third.replies == ["fine"]
    assert len(second.errors) == 1
    assert isinstance(second.errors[0], ValueError)
    assert second.replies == []
    failed = [entry for entry in logs if entry["event"] == "command.failed"]
    assert len(failed) == 1
    assert failed[0]["error_type"] == "ValueError"
    assert failed[0]["command"] == "fail"


@pytest.mark.anyio
async def test_failure_does_not_cancel_slower_siblings(
    registry: CommandRegistry, runner: CommandRunner
) -> None:
    async def slow(message, args):
        await anyio.sleep(0.05)
        return "done"

    registry.create("slow", slow)
    registry.create("fail", _boom)
    slow_message = FakeMessage("slow")
    parent = FakeMessage(
        "batch", sub_messages=[slow_message, FakeMessage("fail")]
    )

    outcomes = await runner.handle(parent)

    assert outcomes == ("completed", "failed")
    assert slow_message.replies == ["done"]


@pytest.mark.anyio
async def test_sub_messages_run_concurrently(
    registry: CommandRegistry, runner: CommandRunner
) -> None:
    released = anyio.Event()

    async def wait(message, args):
        await released.wait()
        return "released"

    def release(message, args):
        released.set()
        return "set"

    registry.create("wait", wait)
    registry.create("release", release)
    waiting = FakeMessage("wait")
    parent = FakeMessage("batch", sub_messages=[waiting, FakeMessage("release")])

    with anyio.fail_after(2):
        outcomes = await runner.handle(parent)

    assert outcomes == ("completed", "completed")
    assert waiting.replies == ["released"]


@pytest.mark.anyio
async def test_error_reply_failure_is_logged_not_raised(
    registry: CommandRegistry, runner: CommandRunner
) -> None:
    registry.create("fail", _boom)
    registry.create("ok", lambda message, args: "fine")
    ok = FakeMessage("ok")
    parent = FakeMessage(
        "batch", sub_messages=[BrokenErrorReplyMessage("fail"), ok]
    )

    with capture_logs() as logs:
        outcomes = await runner.handle(parent)

    assert outcomes == ("failed", "completed")
    assert ok.replies == ["fine"]
    assert any(entry["event"] == "command.error_reply_failed" for entry in logs)


@pytest.mark.anyio
async def test_subcommand_failure_is_reported(
    registry: CommandRegistry, runner: CommandRunner
) -> None:
    registry.create("db").nest(Command.sub("drop", _boom))
    message = FakeMessage("db drop users")

    assert await runner.handle_single(message) == "failed"
    assert [str(err) for err in message.errors] == ["boom"]
