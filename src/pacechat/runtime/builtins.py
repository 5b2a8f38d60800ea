from pacechat.prompts import EXAMPLE_PROMPTS


def _role_label(role: str) -> str:
    return "You" if role == "user" else "Assistant"


class BuiltinCommands:
    def __init__(self, runtime):
        self.runtime = runtime
        self._handlers = {
            "quit": self.cmd_quit,
            "exit": self.cmd_quit,
            "new": self.cmd_new,
            "sessions": self.cmd_sessions,
            "switch": self.cmd_switch,
            "delete": self.cmd_delete,
            "history": self.cmd_history,
            "examples": self.cmd_examples,
            "example": self.cmd_example,
            "model": self.cmd_model,
            "help": self.cmd_help,
        }

    def list_commands(self) -> list[str]:
        return sorted(self._handlers.keys())

    def has_command(self, name: str) -> bool:
        return name in self._handlers

    def handle(self, name: str, args: str) -> bool:
        handler = self._handlers.get(name)
        if not handler:
            return True
        return handler(args)

    def _resolve(self, prefix: str) -> str | None:
        ids = [s.id for s in self.runtime.enumerate()]
        if prefix in ids:
            return prefix
        matches = [sid for sid in ids if sid.startswith(prefix)]
        if len(matches) == 1:
            return matches[0]
        return None

    def cmd_quit(self, args: str) -> bool:
        print("👋 Goodbye!")
        return False

    def cmd_new(self, args: str) -> bool:
        session = self.runtime.new_chat()
        print(f"✅ Started new chat {session.id}")
        return True

    def cmd_sessions(self, args: str) -> bool:
        sessions = self.runtime.enumerate()
        print("Chats:")
        for summary in sessions:
            marker = "*" if summary.id == self.runtime.active_id else " "
            created = summary.created_at.strftime("%Y-%m-%d %H:%M")
            print(f" {marker} {summary.id}  {created}  {summary.message_count:>3} msgs  {summary.title}")
        return True

    def cmd_switch(self, args: str) -> bool:
        if not args:
            print("Usage: /switch <id>")
            return True
        session_id = self._resolve(args.strip())
        if session_id is None:
            print(f"❌ Chat {args} not found")
            return True
        self.runtime.switch_to(session_id)
        print(f"✅ Switched to: {self.runtime.current_title}")
        self.cmd_history("")
        return True

    def cmd_delete(self, args: str) -> bool:
        target = args.strip() or self.runtime.active_id
        session_id = self._resolve(target) if target else None
        if session_id is None:
            print(f"❌ Chat {args} not found")
            return True
        self.runtime.delete(session_id)
        print(f"✅ Deleted chat {session_id}; now in: {self.runtime.current_title}")
        return True

    def cmd_history(self, args: str) -> bool:
        messages = self.runtime.live_messages
        if not messages:
            print("No messages yet. Try /examples for ideas.")
            return True
        for message in messages:
            print(f"\n{_role_label(message.role)}: {message.content}")
        return True

    def cmd_examples(self, args: str) -> bool:
        print("Examples:")
        for index, example in enumerate(EXAMPLE_PROMPTS, start=1):
            print(f"  {index}. {example.title} - {example.description}")
        print("Use /example <n> to send one.")
        return True

    def cmd_example(self, args: str) -> bool:
        try:
            index = int(args.strip()) - 1
        except ValueError:
            print("Usage: /example <n>")
            return True
        if not 0 <= index < len(EXAMPLE_PROMPTS):
            print(f"❌ Pick a number between 1 and {len(EXAMPLE_PROMPTS)}")
            return True
        prompt = self.runtime.use_example(index)
        print(f"\n> {prompt}")
        self.runtime.send(prompt)
        return True

    def cmd_model(self, args: str) -> bool:
        if not args:
            print(f"Current model: {self.runtime.config.model}")
            return True
        model = self.runtime.set_model(args.strip())
        print(f"✅ Switched to model: {model}")
        return True

    def cmd_help(self, args: str) -> bool:
        print("\nCommands:")
        for name in self.list_commands():
            print(f"  /{name}")
        print()
        return True
