#!/usr/bin/env python3

from __future__ import annotations
import sys
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import typer
from rich.console import Console

from wikiproto.errors import WikiclientError, ConfigError
from wikiproto.log import configure_root_logging, get_logger
from .client import WikiClient
from .config import ClientConfig, load_config
from .sessions import SessionStore

app = typer.Typer(help="wikiserver client CLI")
console = Console()
err_console = Console(stderr=True)
logger = get_logger(__name__)

EXIT_ERROR = 1
EXIT_SESSION_EXPIRED = 2


@dataclass
class CLIState:
    config: ClientConfig
    store: SessionStore

    def client(self) -> WikiClient:
        cfg = self.config
        if cfg.session_id is None:
            stored = self.store.get(cfg.wiki_name)
            if stored:
                cfg = cfg.with_overrides(session_id=stored)
        return WikiClient.from_config(cfg)


@app.callback()
def main_options(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--config", help="YAML config file"),
    socket_path: Optional[str] = typer.Option(None, "--socket", help="Path of the wikiserver socket"),
    wiki: Optional[str] = typer.Option(None, "--wiki", help="Wiki name"),
    wiki_password: Optional[str] = typer.Option(None, "--wiki-password", help="Wiki password"),
    session: Optional[str] = typer.Option(None, "--session", help="Session id to resume"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Seconds to wait for a reply"),
    sessions_file: Optional[Path] = typer.Option(None, "--sessions-file", help="Where login sessions are stored"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Talk to a wikiserver over its Unix socket."""
    if verbose:
        configure_root_logging("DEBUG")
    try:
        cfg = load_config(config).with_overrides(
            socket_path=socket_path,
            wiki_name=wiki,
            wiki_password=wiki_password,
            session_id=session,
            timeout=timeout,
        )
    except ConfigError as e:
        err_console.print(f"[red]Config error[/]: {e}")
        raise typer.Exit(EXIT_ERROR)
    ctx.obj = CLIState(config=cfg, store=SessionStore(sessions_file))


def _run(ctx: typer.Context, client: WikiClient, call: Callable[[WikiClient], Optional[Dict[str, Any]]]) -> Dict[str, Any]:
    state: CLIState = ctx.obj
    try:
        res = call(client)
    except WikiclientError as e:
        logger.debug(f"Command failed: {e!r}")
        err_console.print(f"[red]{type(e).__name__}[/]: {e}")
        raise typer.Exit(EXIT_ERROR)

    if res is None:
        state.store.remove(client.wiki_name)
        err_console.print("[yellow]Session expired[/]; log in again with `wikiclient login`")
        raise typer.Exit(EXIT_SESSION_EXPIRED)

    console.print_json(data=res)
    if WikiClient.is_error(res):
        raise typer.Exit(EXIT_ERROR)
    return res


def _read_content(file: Optional[Path]) -> str:
    if file is not None:
        try:
            return file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            err_console.print(f"[red]Cannot read {file}[/]: {e}")
            raise typer.Exit(EXIT_ERROR)
    return sys.stdin.read()


@app.command()
def login(
    ctx: typer.Context,
    username: str = typer.Argument(..., help="Account name"),
    password: str = typer.Option(..., prompt=True, hide_input=True, help="Account password"),
    session_id: Optional[str] = typer.Option(None, help="Session id; generated if omitted"),
):
    """Log in for write access and remember the session."""
    state: CLIState = ctx.obj
    client = WikiClient.from_config(state.config)
    sid = session_id or str(uuid.uuid4())
    _run(ctx, client, lambda c: c.login(username, password, sid))
    if client.session_id:
        state.store.set(client.wiki_name, client.session_id)
        err_console.print(f"[green]Logged in[/] to {client.wiki_name}")


@app.command()
def logout(ctx: typer.Context):
    """Forget the stored session for this wiki."""
    state: CLIState = ctx.obj
    state.store.remove(state.config.wiki_name)
    err_console.print(f"Forgot session for {state.config.wiki_name}")


@app.command()
def ping(ctx: typer.Context):
    """Check that the server answers."""
    _run(ctx, ctx.obj.client(), lambda c: c.ping())


@app.command()
def page(ctx: typer.Context, name: str):
    """Fetch a rendered page."""
    _run(ctx, ctx.obj.client(), lambda c: c.page(name))


@app.command("page-code")
def page_code(
    ctx: typer.Context,
    name: str,
    display_page: bool = typer.Option(False, "--display/--no-display", help="Also render the page"),
):
    """Fetch a page's source code."""
    _run(ctx, ctx.obj.client(), lambda c: c.page_code(name, display_page))


@app.command("page-list")
def page_list(ctx: typer.Context, sort: str = typer.Option("m-", help="Sort order")):
    """List pages."""
    _run(ctx, ctx.obj.client(), lambda c: c.page_list(sort))


@app.command("model-code")
def model_code(
    ctx: typer.Context,
    name: str,
    display_model: bool = typer.Option(False, "--display/--no-display", help="Also render the model"),
):
    """Fetch a model's source code."""
    _run(ctx, ctx.obj.client(), lambda c: c.model_code(name, display_model))


@app.command("model-list")
def model_list(ctx: typer.Context, sort: str = typer.Option("m-", help="Sort order")):
    """List models."""
    _run(ctx, ctx.obj.client(), lambda c: c.model_list(sort))


@app.command()
def image(ctx: typer.Context, name: str, width: int = typer.Option(0), height: int = typer.Option(0)):
    """Fetch an image, optionally scaled."""
    _run(ctx, ctx.obj.client(), lambda c: c.image(name, width, height))


@app.command("cat-posts")
def cat_posts(ctx: typer.Context, name: str, page_n: int = typer.Option(1, "--page", help="Page of results")):
    """List the posts in a category."""
    _run(ctx, ctx.obj.client(), lambda c: c.cat_posts(name, page_n))


@app.command("cat-list")
def cat_list(ctx: typer.Context, sort: str = typer.Option("m-", help="Sort order")):
    """List categories."""
    _run(ctx, ctx.obj.client(), lambda c: c.cat_list(sort))


@app.command("page-save")
def page_save(
    ctx: typer.Context,
    name: str,
    message: str = typer.Option("", "--message", "-m", help="Commit message"),
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="Read content from file instead of stdin"),
):
    """Save a page."""
    content = _read_content(file)
    _run(ctx, ctx.obj.client(), lambda c: c.page_save(name, content, message))


@app.command("page-del")
def page_del(ctx: typer.Context, name: str):
    """Delete a page."""
    _run(ctx, ctx.obj.client(), lambda c: c.page_del(name))


@app.command("page-move")
def page_move(ctx: typer.Context, name: str, new_name: str):
    """Rename a page."""
    _run(ctx, ctx.obj.client(), lambda c: c.page_move(name, new_name))


@app.command("model-save")
def model_save(
    ctx: typer.Context,
    name: str,
    message: str = typer.Option("", "--message", "-m", help="Commit message"),
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="Read content from file instead of stdin"),
):
    """Save a model."""
    content = _read_content(file)
    _run(ctx, ctx.obj.client(), lambda c: c.model_save(name, content, message))


@app.command("model-del")
def model_del(ctx: typer.Context, name: str):
    """Delete a model."""
    _run(ctx, ctx.obj.client(), lambda c: c.model_del(name))


@app.command("model-move")
def model_move(ctx: typer.Context, name: str, new_name: str):
    """Rename a model."""
    _run(ctx, ctx.obj.client(), lambda c: c.model_move(name, new_name))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
