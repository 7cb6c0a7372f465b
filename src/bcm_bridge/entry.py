#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import asyncio
import signal
from types import SimpleNamespace

import click
from prompt_toolkit.application.current import get_app
from rich.panel import Panel
from rich.text import Text

from bcm_bridge.bridge import BridgeClient
from bcm_bridge.display import console, info_panel, print_failure, print_payload, setup_logging
from bcm_bridge.errors import ConfigError
from bcm_bridge.key_manager import KeyBindingManager, SessionFactory
from bcm_bridge.utils import Config, Outcome


# ========== Interactive chat ==========
class App:
    def __init__(self, cfg: Config, transport=None):
        self.cfg = cfg
        self.bridge = BridgeClient(cfg, transport=transport)

        def accept():
            app = get_app()
            app.exit(result=app.current_buffer.text)

        def clear():
            get_app().exit(exception=KeyboardInterrupt)

        self.kbm = KeyBindingManager(accept_callback=accept, clear_callback=clear)
        self.session = SessionFactory.build_session(self.kbm.bindings)
        self.counter = 1

    async def run(self):
        self._print_banner()
        try:
            while True:
                try:
                    text = await self.session.prompt_async(SessionFactory.make_prompt_fragments(self.counter))
                except KeyboardInterrupt:
                    console.print("[warn] Input cancelled. (Ctrl+C)[/warn]")
                    continue
                except EOFError:
                    console.print("\n[info]Exited. (Ctrl+D)[/info]")
                    break
                if not text.strip():
                    continue
                try:
                    await self._handle_submit(text)
                except Exception as e:
                    console.print(Panel.fit(Text(repr(e), no_wrap=False), title="Unexpected error !", border_style="red"))
                self.counter += 1
        finally:
            await self.bridge.aclose()

    async def _handle_submit(self, text: str):
        result = await self.bridge.ask_backend(text)
        if result.ok:
            reply = result.data if isinstance(result.data, str) else _chat_reply(result.data)
            console.print(Text(reply, no_wrap=False))
        else:
            print_failure(result, title="Chat error.")

    def _print_banner(self):
        submit_hint = ", ".join(self.kbm.submit_labels) or "Enter"
        console.rule("[info]Start[/info]")
        console.print(Panel.fit(
                Text(
                        "Descriptions:\n"
                        f" - Send: {submit_hint}\n"
                        " - New line: Esc+Enter\n"
                        " - Cancel: Ctrl+C\n"
                        " - Exit: Ctrl+D\n\n"
                        "Mention 'course' or 'faq' to get live listings, anything else goes to the chat service.",
                        no_wrap=False
                ),
                title="Help", border_style="cyan"
        ))
        console.print(f"[info]Backend: [/info]{self.cfg.base_url}")
        if not self.cfg.verify_tls:
            console.print("[warn] Disable tls verification ! (--insecure)[/warn]")


def _chat_reply(data) -> str:
    # /chat usually answers {"reply": "..."}; show anything else as-is.
    if isinstance(data, dict):
        for key in ("reply", "answer", "message"):
            if isinstance(data.get(key), str):
                return data[key]
    return str(data)


# ========== Command helpers ==========
def _run(ctx: click.Context, call):
    """Run ``call(bridge)`` on a fresh client and event loop."""
    cfg = ctx.obj["cfg"]
    transport = ctx.obj.get("transport")

    async def go():
        async with BridgeClient(cfg, transport=transport) as bridge:
            return await call(bridge)

    return asyncio.run(go())


def _report(ctx: click.Context, outcome: Outcome, title: str):
    if outcome.ok:
        print_payload(outcome.data, title=title)
    else:
        print_failure(outcome)
        ctx.exit(1)


# ========== CLI with Click ==========
@click.group()
@click.option("--base-url", help="Backend base URL, e.g. https://bcm-demo.onrender.com")
@click.option("--admin-key", help="Admin key sent with admin-only requests.")
@click.option("--timeout", type=int, default=None, help="Per-request timeout in milliseconds.  [default: 12000]")
@click.option("--insecure", is_flag=True, help="Whether disable tls.")
@click.option("--debug", "-d", is_flag=True, help="Log requests to the console.")
@click.pass_context
def cli(ctx, base_url, admin_key, timeout, insecure, debug):
    """
    bcm-bridge: talk to the BCM backend from the command line.
    """
    signal.signal(signal.SIGINT, signal.SIG_DFL)
    args = SimpleNamespace(base_url=base_url, admin_key=admin_key, timeout=timeout, insecure=insecure, debug=debug)
    try:
        cfg = Config.init_from_args(args)
    except ConfigError as e:
        raise click.ClickException(str(e))
    setup_logging(cfg.debug)
    ctx.ensure_object(dict)
    ctx.obj["cfg"] = cfg


@cli.command("health")
@click.pass_context
def health_cmd(ctx):
    """Ping the backend health endpoint."""
    _report(ctx, _run(ctx, lambda b: b.ping_health()), "Health")


@cli.command("courses")
@click.option("--json", "as_json", is_flag=True, help="Print the raw payload.")
@click.pass_context
def courses_cmd(ctx, as_json):
    """List courses."""
    if as_json:
        _report(ctx, _run(ctx, lambda b: b.fetch_courses()), "Courses")
    else:
        info_panel("Courses", _run(ctx, lambda b: b.fetch_courses_text()))


@cli.command("faqs")
@click.option("--json", "as_json", is_flag=True, help="Print the raw payload.")
@click.pass_context
def faqs_cmd(ctx, as_json):
    """List FAQs."""
    if as_json:
        _report(ctx, _run(ctx, lambda b: b.fetch_faqs()), "FAQs")
    else:
        info_panel("FAQs", _run(ctx, lambda b: b.fetch_faqs_text()))


@cli.command("enrollments")
@click.option("--limit", type=int, default=10, show_default=True)
@click.option("--source", default=None)
@click.option("--json", "as_json", is_flag=True, help="Print the raw payload.")
@click.pass_context
def enrollments_cmd(ctx, limit, source, as_json):
    """List recent enrollments (needs an admin key)."""
    if as_json:
        _report(ctx, _run(ctx, lambda b: b.fetch_recent_enrollments(limit, source)), "Enrollments")
    else:
        info_panel("Enrollments", _run(ctx, lambda b: b.fetch_recent_enrollments_text(limit, source)))


@cli.command("enroll")
@click.option("--full-name", required=True)
@click.option("--email", required=True)
@click.option("--phone")
@click.option("--course-id")
@click.option("--source")
@click.pass_context
def enroll_cmd(ctx, full_name, email, phone, course_id, source):
    """Create an enrollment."""
    fields = {"full_name": full_name, "email": email, "phone": phone, "course_id": course_id, "source": source}
    payload = {k: v for k, v in fields.items() if v is not None}
    _report(ctx, _run(ctx, lambda b: b.create_enrollment(payload)), "Enrolled")


@cli.command("ask")
@click.argument("words", nargs=-1, required=True)
@click.pass_context
def ask_cmd(ctx, words):
    """Send one utterance through the keyword router."""
    outcome = _run(ctx, lambda b: b.ask_backend(" ".join(words)))
    if outcome.ok and not isinstance(outcome.data, str):
        console.print(Text(_chat_reply(outcome.data), no_wrap=False))
        return
    _report(ctx, outcome, "Reply")


@cli.command("chat")
@click.pass_context
def chat_cmd(ctx):
    """Start an interactive chat session."""
    app = App(ctx.obj["cfg"], transport=ctx.obj.get("transport"))
    asyncio.run(app.run())


def main():
    cli(prog_name="bcm-bridge")


if __name__ == "__main__":
    main()
