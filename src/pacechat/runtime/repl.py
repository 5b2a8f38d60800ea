from common.events import (
    AssistantDeltaEvent,
    AssistantMessageEvent,
    AssistantResponseStartEvent,
    ErrorEvent,
)
from pacechat.runtime.builtins import BuiltinCommands
from pacechat.runtime.router import InputRouter


class ChatREPL:
    def __init__(self, runtime):
        self.runtime = runtime
        self.builtins = BuiltinCommands(runtime)
        self.router = InputRouter(self.builtins)
        self._unsubscribe = runtime.engine.subscribe(self._on_event)

    def _on_event(self, event) -> None:
        if isinstance(event, AssistantResponseStartEvent):
            print("\n🤖 Assistant:", end=" ", flush=True)
            return
        if isinstance(event, AssistantDeltaEvent):
            print(event.text, end="", flush=True)
            return
        if isinstance(event, AssistantMessageEvent):
            print(" [stopped]" if event.cancelled else "")
            return
        if isinstance(event, ErrorEvent):
            print(f"\n❌ Error: {event.message}")

    def _send(self, content: str) -> None:
        try:
            self.runtime.send(content)
        except KeyboardInterrupt:
            print("\n⏹  Stopped; partial reply kept")

    def run(self, initial_message: str | None = None):
        print(f"🏃 PaceChat started (model: {self.runtime.config.model})")
        print(f"Chat: {self.runtime.current_title} ({len(self.runtime.enumerate())} saved)")
        print("Commands: /help for all commands, /examples for ideas")
        if self.runtime.live_messages:
            self.builtins.cmd_history("")

        if initial_message:
            self._send(initial_message)

        try:
            while True:
                try:
                    user_input = input(f"\n[{self.runtime.current_title}] > ").strip()

                    if not user_input:
                        continue

                    route = self.router.route(user_input)
                    if route.kind == "builtin":
                        if not self.builtins.handle(route.name, route.args):
                            break
                        continue
                    if route.kind == "unknown":
                        print(
                            f"Unknown command: /{route.name}. Type /help for available commands."
                        )
                        continue

                    self._send(route.args)

                except KeyboardInterrupt:
                    print("\n\n⚠️  Interrupted")
                    break
                except EOFError:
                    break
                except Exception as e:
                    print(f"\n❌ Error: {e}")
                    import traceback

                    traceback.print_exc()
        finally:
            self._unsubscribe()
