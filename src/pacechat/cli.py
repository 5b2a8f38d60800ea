from __future__ import annotations

import argparse
import json
import logging
import sys

from dotenv import load_dotenv

from pacechat.config import ChatConfig, ConfigError, resolve_model_alias


def main() -> int:
    load_dotenv()
    return _main(sys.argv[1:])


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("LiteLLM").setLevel(logging.WARNING)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pacechat", description="PaceChat - multi-session AI chat"
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("--storage-dir", default=None, help="Where chats are stored")
    subparsers = parser.add_subparsers(dest="command", required=False)

    repl = subparsers.add_parser("repl", help="Start interactive chat REPL")
    repl.add_argument(
        "--model",
        default=None,
        help="Model to use (supports aliases: sonnet, opus, haiku, mini, flash, deepseek)",
    )
    repl.add_argument("--message", "-m", help="Single prompt (non-interactive)")

    sessions = subparsers.add_parser("sessions", help="Inspect stored chats")
    sessions_sub = sessions.add_subparsers(dest="sessions_cmd", required=False)
    sessions_list = sessions_sub.add_parser("list", help="List chats")
    sessions_list.add_argument("--limit", type=int, default=20)
    sessions_show = sessions_sub.add_parser("show", help="Print one chat as JSON")
    sessions_show.add_argument("session_id")

    gui = subparsers.add_parser("gui", help="Launch Gradio web interface")
    gui.add_argument("--port", type=int, default=7860)
    gui.add_argument("--share", action="store_true", help="Create public link")

    return parser


def _load_config(args) -> ChatConfig:
    config = ChatConfig.from_env()
    if getattr(args, "storage_dir", None):
        config.storage_dir = args.storage_dir
    if getattr(args, "model", None):
        config.model = resolve_model_alias(args.model)
    config.validate()
    return config


def _main(argv: list[str]) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(bool(args.verbose))

    try:
        config = _load_config(args)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    cmd = args.command or "repl"
    if cmd == "repl":
        return _cmd_repl(config, message=getattr(args, "message", None))
    if cmd == "sessions":
        return _cmd_sessions(config, args)
    if cmd == "gui":
        return _cmd_gui(config, args)

    parser.print_help(sys.stderr)
    return 2


def _cmd_repl(config: ChatConfig, message: str | None) -> int:
    from pacechat.runtime.repl import ChatREPL
    from pacechat.runtime.runtime import ChatRuntime

    runtime = ChatRuntime(config)
    runtime.start()
    try:
        if message:
            reply = runtime.send(message)
            if runtime.error:
                print(f"Error: {runtime.error}", file=sys.stderr)
                return 1
            print(reply.content if reply else "")
            return 0

        repl = ChatREPL(runtime)
        repl.run(initial_message=None)
        return 0
    finally:
        runtime.close()


def _cmd_sessions(config: ChatConfig, args) -> int:
    from pacechat.sessions.persistence import PersistenceAdapter
    from pacechat.sessions.storage import JsonFileStorage

    adapter = PersistenceAdapter(JsonFileStorage(config.storage_dir).slot(config.storage_key))
    sessions = adapter.load()
    sub = args.sessions_cmd or "list"

    if sub == "list":
        limit = max(0, int(getattr(args, "limit", 20)))
        if not sessions:
            print("No chats found.")
            return 0
        print(f"{'ID':<15} {'Created':<20} {'Msgs':>4}  {'Title'}")
        for summary in [s.summary() for s in sessions[:limit]]:
            created = summary.created_at.strftime("%Y-%m-%d %H:%M:%S")
            print(f"{summary.id:<15} {created:<20} {summary.message_count:>4}  {summary.title}")
        return 0

    if sub == "show":
        for session in sessions:
            if session.id == args.session_id:
                print(json.dumps(session.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=False))
                return 0
        print(f"Chat not found: {args.session_id}", file=sys.stderr)
        return 1

    return 2


def _cmd_gui(config: ChatConfig, args) -> int:
    try:
        from pacechat.gui.app import launch
    except ImportError:
        print("Gradio not installed. Run: pip install 'pacechat[gui]'.", file=sys.stderr)
        return 1

    print(f"Launching PaceChat GUI on port {args.port}...")
    try:
        launch(config, server_port=args.port, share=args.share)
    except ImportError as e:
        print(str(e), file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
