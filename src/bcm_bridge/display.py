import logging
from typing import Any, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.text import Text
from rich.theme import Theme

from bcm_bridge.utils import Outcome

# ========== UI Theme ==========
custom_theme = Theme({
    "ok":   "bold green",
    "warn": "bold yellow",
    "err":  "bold red",
    "info": "bold cyan",
})
console = Console(theme=custom_theme)


def setup_logging(debug: bool = False):
    # Silent unless asked: the library itself never installs a handler.
    if not debug:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    # httpx/httpcore chatter drowns out our own request lines.
    logging.getLogger("httpcore").setLevel(logging.INFO)


def info_panel(title: str, msg: str, style: str = "cyan"):
    console.print(Panel.fit(Text(msg, no_wrap=False), title=title, border_style=style))


def error_panel(title: str, msg: str):
    info_panel(title, msg, style="red")


def print_payload(data: Any, title: Optional[str] = None):
    if isinstance(data, str):
        info_panel(title or "Response", data, style="green")
    else:
        if title:
            console.rule(f"[info]{title}[/info]")
        console.print_json(data=data)


def print_failure(outcome: Outcome, title: str = "Request failed !"):
    msg = outcome.error
    if outcome.status_code is not None:
        msg += f"\nStatus: {outcome.status_code}"
        if outcome.body_discarded:
            msg += " (server sent a body that was not kept)"
    error_panel(title, msg)
