from __future__ import annotations

import logging

try:
    import gradio as gr
except ImportError:
    gr = None

from pacechat.config import ChatConfig
from pacechat.engine import EngineBusyError
from pacechat.prompts import EXAMPLE_PROMPTS
from pacechat.runtime.runtime import ChatRuntime

logger = logging.getLogger(__name__)


def _check_gradio() -> None:
    if gr is None:
        raise ImportError("Gradio not installed. Run: pip install 'pacechat[gui]'")


def _session_choices(runtime: ChatRuntime) -> list[tuple[str, str]]:
    return [(summary.title, summary.id) for summary in runtime.enumerate()]


def _chat_history(runtime: ChatRuntime) -> list[dict[str, str]]:
    return [message.to_api() for message in runtime.live_messages]


def _view(runtime: ChatRuntime) -> tuple:
    history = _chat_history(runtime)
    return (
        gr.update(choices=_session_choices(runtime), value=runtime.active_id),
        history,
        f"## {runtime.current_title}",
        gr.update(visible=runtime.can_delete),
        gr.update(visible=not history),
    )


def create_app(runtime: ChatRuntime) -> "gr.Blocks":
    _check_gradio()

    def on_load():
        return _view(runtime)

    def on_new():
        runtime.new_chat()
        return (*_view(runtime), "")

    def on_select(session_id: str | None):
        if session_id and session_id != runtime.active_id:
            runtime.switch_to(session_id)
        return (*_view(runtime), runtime.draft)

    def on_delete():
        if runtime.active_id is not None:
            runtime.delete(runtime.active_id)
        return (*_view(runtime), runtime.draft)

    def on_send(text: str):
        if not text.strip():
            yield (*_view(runtime), text)
            return
        try:
            for _ in runtime.stream(text):
                yield (*_view(runtime), "")
        except EngineBusyError:
            gr.Warning("Wait for the current reply to finish or press Stop.")
            yield (*_view(runtime), text)
            return
        if runtime.error:
            gr.Warning(f"The assistant failed to reply: {runtime.error}")
        yield (*_view(runtime), "")

    def on_stop():
        runtime.stop()

    def on_example(index: int):
        def handler():
            return runtime.use_example(index)

        return handler

    with gr.Blocks(title="PaceChat") as app:
        with gr.Row():
            with gr.Column(scale=1, min_width=220):
                gr.Markdown("### Chat History")
                new_btn = gr.Button("New Chat", variant="secondary")
                sessions = gr.Radio(choices=[], label="Chats", interactive=True)
                delete_btn = gr.Button("Delete chat", variant="stop", size="sm")

            with gr.Column(scale=4):
                title = gr.Markdown("## New Chat")
                chatbot = gr.Chatbot(type="messages", height=520, label="Conversation")
                with gr.Column(visible=True) as examples:
                    gr.Markdown(
                        "**Welcome to AI Chat!** Start a conversation by typing a message "
                        "below or try one of these examples:"
                    )
                    with gr.Row():
                        example_btns = [
                            gr.Button(f"{example.title}\n{example.description}")
                            for example in EXAMPLE_PROMPTS
                        ]
                with gr.Row():
                    textbox = gr.Textbox(
                        placeholder="Type your message...",
                        show_label=False,
                        scale=5,
                    )
                    send_btn = gr.Button("Send", variant="primary", scale=1)
                    stop_btn = gr.Button("Stop", scale=1)

        view_outputs = [sessions, chatbot, title, delete_btn, examples]
        with_input = view_outputs + [textbox]

        app.load(fn=on_load, outputs=view_outputs)
        new_btn.click(fn=on_new, outputs=with_input)
        sessions.input(fn=on_select, inputs=sessions, outputs=with_input)
        delete_btn.click(fn=on_delete, outputs=with_input)
        send_btn.click(fn=on_send, inputs=textbox, outputs=with_input)
        textbox.submit(fn=on_send, inputs=textbox, outputs=with_input)
        stop_btn.click(fn=on_stop, queue=False)
        for index, button in enumerate(example_btns):
            button.click(fn=on_example(index), outputs=textbox)

    return app


def launch(config: ChatConfig | None = None, **kwargs) -> None:
    runtime = ChatRuntime(config or ChatConfig.from_env())
    runtime.start()
    logger.info(f"Launching GUI with {len(runtime.enumerate())} chats")
    app = create_app(runtime)
    try:
        app.launch(**kwargs)
    finally:
        runtime.close()
