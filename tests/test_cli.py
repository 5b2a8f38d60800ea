import json

from conftest import FakeCompletion
from pacechat.cli import _main
from pacechat.runtime.builtins import BuiltinCommands
from pacechat.runtime.router import InputRouter
from pacechat.runtime.runtime import ChatRuntime
from pacechat.sessions.storage import JsonFileStorage


class TestInputRouter:
    def test_plain_text_is_a_prompt(self, make_runtime):
        router = InputRouter(BuiltinCommands(make_runtime()))
        route = router.route("How far should my long run be?")
        assert route.kind == "prompt"
        assert route.args == "How far should my long run be?"

    def test_builtin_with_args(self, make_runtime):
        router = InputRouter(BuiltinCommands(make_runtime()))
        route = router.route("/switch 1714")
        assert (route.kind, route.name, route.args) == ("builtin", "switch", "1714")

    def test_unknown_command(self, make_runtime):
        router = InputRouter(BuiltinCommands(make_runtime()))
        assert router.route("/nope").kind == "unknown"


def test_builtins_manage_sessions(make_runtime, capsys):
    runtime = make_runtime(FakeCompletion(["First reply"], ["Second reply"]))
    runtime.start()
    builtins = BuiltinCommands(runtime)
    first = runtime.active_id
    runtime.send("Marathon taper?")

    assert builtins.handle("new", "") is True
    second = runtime.active_id
    assert second != first

    builtins.handle("switch", first)
    assert runtime.active_id == first
    out = capsys.readouterr().out
    assert "Marathon taper?" in out
    assert "First reply" in out

    builtins.handle("delete", "")
    assert runtime.active_id == second
    assert [s.id for s in runtime.enumerate()] == [second]

    builtins.handle("sessions", "")
    assert second in capsys.readouterr().out


def test_sessions_builtin_shows_message_counts(make_runtime, capsys):
    runtime = make_runtime(FakeCompletion(["Easy miles."]))
    runtime.start()
    runtime.send("Recovery week?")
    capsys.readouterr()

    BuiltinCommands(runtime).handle("sessions", "")

    line = [l for l in capsys.readouterr().out.splitlines() if runtime.active_id in l][0]
    assert "2 msgs" in line
    assert "Recovery week?" in line


def test_builtin_example_sends_prompt(make_runtime, capsys):
    runtime = make_runtime(FakeCompletion(["Looks solid."]))
    runtime.start()
    builtins = BuiltinCommands(runtime)

    builtins.handle("example", "1")

    assert runtime.current_title.startswith("I've been running 5K")
    assert runtime.live_messages[-1].content == "Looks solid."


def test_builtin_example_rejects_bad_index(make_runtime, capsys):
    runtime = make_runtime()
    runtime.start()
    builtins = BuiltinCommands(runtime)

    builtins.handle("example", "9")

    assert "Pick a number" in capsys.readouterr().out
    assert runtime.live_messages == []


def test_quit_ends_loop(make_runtime):
    builtins = BuiltinCommands(make_runtime())
    assert builtins.handle("quit", "") is False


def test_sessions_list_and_show(chat_config, tmp_path, capsys):
    storage_dir = tmp_path / "store"
    chat_config.storage_dir = str(storage_dir)
    runtime = ChatRuntime(
        chat_config, storage=JsonFileStorage(storage_dir), completion_fn=FakeCompletion(["Go."])
    )
    runtime.start()
    runtime.send("Ready to race?")
    session_id = runtime.active_id
    runtime.close()
    capsys.readouterr()

    assert _main(["--storage-dir", str(storage_dir), "sessions", "list"]) == 0
    listing = capsys.readouterr().out
    assert session_id in listing
    assert "Ready to race?" in listing

    assert _main(["--storage-dir", str(storage_dir), "sessions", "show", session_id]) == 0
    shown = json.loads(capsys.readouterr().out)
    assert shown["title"] == "Ready to race?"
    assert "createdAt" in shown

    assert _main(["--storage-dir", str(storage_dir), "sessions", "show", "missing"]) == 1


def test_sessions_list_empty(tmp_path, capsys):
    assert _main(["--storage-dir", str(tmp_path / "none"), "sessions", "list"]) == 0
    assert "No chats found." in capsys.readouterr().out
