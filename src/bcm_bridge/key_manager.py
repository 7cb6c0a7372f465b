from typing import Callable, List

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.lexers import PygmentsLexer
from pygments.lexers.markup import MarkdownLexer


# ========== Key bindings ==========
class KeyBindingManager:
    """Enter sends the utterance, Esc+Enter breaks the line, Ctrl+C clears it."""

    def __init__(self, accept_callback: Callable[[], None], clear_callback: Callable[[], None]):
        self.bindings = KeyBindings()
        self.submit_labels: List[str] = []

        @self.bindings.add("enter")
        def _(event):
            accept_callback()

        self.submit_labels.append("Enter")

        @self.bindings.add("escape", "enter")
        def _(event):
            event.current_buffer.insert_text("\n")

        @self.bindings.add("c-c")
        def _(event):
            clear_callback()


# ========== Prompt session ==========
class SessionFactory:
    @staticmethod
    def build_session(bindings: KeyBindings) -> PromptSession:
        return PromptSession(
            multiline=True,
            key_bindings=bindings,
            lexer=PygmentsLexer(MarkdownLexer),
            history=InMemoryHistory(),
        )

    @staticmethod
    def make_prompt_fragments(counter: int):
        return [
            ("class:prompt.counter", f"[{counter}] "),
            ("class:prompt.arrow", "you> "),
        ]
