"""chatline CLI: post to the local log and page merged channel timelines."""

import asyncio
import logging

import typer

from chatline.bridge import ChannelRegistry, channel_log, private_log
from chatline.lib import config

from . import output
from .errors import error_feedback

app = typer.Typer(help="Channel timelines over the local message log", no_args_is_help=True)


@app.callback()
def main(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", help="Output JSON"),
    quiet_output: bool = typer.Option(False, "--quiet", help="Suppress output"),
):
    output.init_context(ctx, json_output, quiet_output)
    logging.basicConfig(
        level=str(config.get("log_level")).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@app.command("init")
@error_feedback
def init_cmd(ctx: typer.Context):
    """Write the default config to ~/.chatline/config.yaml if missing."""
    path = config.init_config()
    output.echo_json({"config": str(path)}, ctx) or output.echo_text(f"Config: {path}", ctx)


@app.command("post")
@error_feedback
def post_cmd(
    ctx: typer.Context,
    channel: str = typer.Argument(..., help="Channel name"),
    text: str = typer.Argument(..., help="Message text"),
    author: str = typer.Option(..., "--as", help="Author key"),
    at: float = typer.Option(None, "--at", help="Timestamp in epoch ms (default: now)"),
):
    """Append a message to a channel log."""
    event = channel_log().append(channel.lstrip("#"), author, text, timestamp=at)
    output.echo_json(event.to_dict(), ctx) or output.echo_text(
        f"Posted to #{channel.lstrip('#')} as {author} (seq {event.seq})", ctx
    )


@app.command("dm")
@error_feedback
def dm_cmd(
    ctx: typer.Context,
    peer: str = typer.Argument(..., help="Recipient public key"),
    text: str = typer.Argument(..., help="Message text"),
    author: str = typer.Option(..., "--as", help="Author key"),
    at: float = typer.Option(None, "--at", help="Timestamp in epoch ms (default: now)"),
):
    """Append a private message for a recipient."""
    event = private_log().append(peer, author, text, timestamp=at)
    output.echo_json(event.to_dict(), ctx) or output.echo_text(
        f"Sent to {peer[:8]} as {author} (seq {event.seq})", ctx
    )


@app.command("page")
@error_feedback
def page_cmd(
    ctx: typer.Context,
    channel: str = typer.Argument(..., help="Channel name, or peer key with --dm"),
    limit: int = typer.Option(None, "--limit", "-n", help="Page size (default: page_limit)"),
    gt: float = typer.Option(None, "--gt", help="Only events newer than this (epoch ms)"),
    lt: float = typer.Option(None, "--lt", help="Only events older than this (epoch ms)"),
    dm: bool = typer.Option(False, "--dm", help="Read the private log for a peer"),
):
    """Show one page of a channel timeline with date markers."""
    registry = ChannelRegistry(channel_log(), private_log())
    state = registry.get_direct(channel) if dm else registry.get(channel)
    opts = {"limit": limit if limit is not None else config.get("page_limit"), "gt": gt, "lt": lt}
    page = asyncio.run(state.get_page(opts))

    if output.echo_json([event.to_dict() for event in page], ctx):
        return
    if not page:
        output.echo_text(f"No messages in {state}", ctx)
        return
    output.echo_text(f"# {state}", ctx)
    for event in page:
        output.echo_text(output.format_event(event), ctx)
