"""Command-line interface for Backlink Renamer."""

import os
import sys
import threading
import click
import logging
from pathlib import Path
from typing import Optional, Tuple

from .config import (
    load_config, find_config_file, save_config_file,
    DEFAULT_CONFIG_FILENAME, DEFAULT_LOG_TEMPLATE,
)
from .api_client import WikiClient, WikiAPIError
from .link_rewriter import LinkRewriter
from .logging_utils import setup_logging
from .models import DocumentOutcome, DocumentStatus, RenameJob
from .monitor import DiscussionMonitor
from .orchestrator import RenameOrchestrator


# Commands that never talk to the wiki
OFFLINE_COMMANDS = ('init', 'preview')

STATUS_MARKERS = {
    DocumentStatus.EDITED: "✅ Edited",
    DocumentStatus.SUBMIT_FAILED: "❌ Failed to edit",
    DocumentStatus.FETCH_FAILED: "❌ Failed to edit",
    DocumentStatus.PERMISSION_DENIED: "🔒 No permission to edit",
    DocumentStatus.DRY_RUN: "📝 Would edit",
    DocumentStatus.HALTED: "⏹️  Not processed",
}


def prompt_for_config(config_path: Path) -> Path:
    """Ask for connection and run settings and save them to ``config_path``."""
    data = {
        "wiki": {
            "domain": click.prompt("Wiki domain (e.g. theseed.io)"),
            "token": click.prompt("API token", hide_input=True),
        },
        "rename": {
            "namespaces": click.prompt("Namespaces to search (comma-separated)"),
            "log_template": click.prompt("Edit summary ({old} and {new} are replaced)",
                                         default=DEFAULT_LOG_TEMPLATE),
            "watch_document": click.prompt("Document to watch for open discussions",
                                           default="", show_default=False),
        },
    }
    return save_config_file(config_path, data)


def echo_outcome(outcome: DocumentOutcome) -> None:
    """Print one document outcome, skipping unchanged documents."""
    marker = STATUS_MARKERS.get(outcome.status)
    if marker is None:
        return
    line = f"{marker} [[{outcome.title}]] {outcome.progress}"
    if outcome.error:
        line += f"\n   {outcome.error}"
    click.echo(line, err=outcome.status in (DocumentStatus.FETCH_FAILED, DocumentStatus.SUBMIT_FAILED))


@click.group()
@click.option('--log-level', default=None, help='Logging level (DEBUG, INFO, WARNING, ERROR)')
@click.option('--config', '--config-file', help='Path to configuration file (INI, YAML, TOML, or JSON)')
@click.pass_context
def cli(ctx, log_level: Optional[str], config: Optional[str]):
    """Backlink Renamer - repoint wiki links from one title to another."""
    ctx.ensure_object(dict)

    if ctx.invoked_subcommand in OFFLINE_COMMANDS:
        setup_logging(log_level or "INFO")
        return

    try:
        if not config and find_config_file() is None and not os.getenv("WIKI_DOMAIN"):
            click.echo("No configuration found, starting first-run setup")
            config = str(prompt_for_config(Path.cwd() / DEFAULT_CONFIG_FILENAME))

        app_config = load_config(config_file=config)
        ctx.obj['config'] = app_config

        setup_logging(log_level or app_config.log_level)

        settings = app_config.rename
        ctx.obj['client'] = WikiClient(
            app_config.wiki,
            detect_permission_denied=settings.detect_permission_denied,
            permission_denied_phrase=settings.permission_denied_phrase,
        )

    except Exception as e:
        logging.getLogger(__name__).error(f"Initialization failed: {e}")
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument('old_title', required=False)
@click.argument('new_title', required=False)
@click.option('--keep-display-text/--no-keep-display-text', default=None,
              help='Keep the old title as visible text on bare links')
@click.option('--namespace', '-n', 'namespaces', multiple=True,
              help='Namespace to search (repeatable, overrides configuration)')
@click.option('--dry-run', is_flag=True, help='Rewrite without submitting edits')
@click.pass_context
def rename(ctx, old_title: Optional[str], new_title: Optional[str],
           keep_display_text: Optional[bool], namespaces: Tuple[str, ...], dry_run: bool):
    """Repoint every link to OLD_TITLE so it targets NEW_TITLE."""
    app_config = ctx.obj['config']
    client = ctx.obj['client']
    settings = app_config.rename

    old_title = old_title or click.prompt("Old title")
    new_title = new_title or click.prompt("New title")
    if keep_display_text is None:
        keep_display_text = click.confirm("Keep the old title as display text?", default=False)

    try:
        job = RenameJob(
            old_title=old_title,
            new_title=new_title,
            keep_display_text=keep_display_text,
            log_template=settings.log_template,
        )
    except ValueError as e:
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)

    halt_event = threading.Event()
    monitor = None
    if settings.watch_document and not dry_run:
        # Separate client: requests sessions are not shared across threads
        monitor = DiscussionMonitor(
            WikiClient(app_config.wiki), settings.watch_document, halt_event, settings.poll_interval
        )
        monitor.start()
    elif not dry_run:
        logging.getLogger(__name__).warning("No watch document configured; running without discussion monitor")

    orchestrator = RenameOrchestrator(client, settings, halt_event=halt_event, on_outcome=echo_outcome)
    try:
        report = orchestrator.run(job, namespaces=namespaces or None, dry_run=dry_run)
    finally:
        if monitor:
            monitor.stop(timeout=1.0)

    for namespace, error in report.failed_namespaces.items():
        click.echo(f"⚠️  Backlink lookup failed in namespace '{namespace}': {error}", err=True)

    if report.halted:
        reason = f"open discussion on [[{settings.watch_document}]]"
        if monitor and monitor.error:
            reason = f"discussion check failed: {monitor.error}"
        click.echo(f"⏹️  Stopped: {reason}")
        sys.exit(0)

    click.echo(
        f"Done: {len(report.documents)} backlink(s), {report.edited} edited, "
        f"{report.unchanged} unchanged, {report.failed} failed"
    )


@cli.command()
@click.argument('title', required=False)
@click.pass_context
def discussions(ctx, title: Optional[str]):
    """Show discussions on TITLE (defaults to the watch document)."""
    client = ctx.obj['client']
    title = title or ctx.obj['config'].rename.watch_document
    if not title:
        click.echo("❌ No title given and no watch document configured", err=True)
        sys.exit(1)

    try:
        threads = client.list_discussions(title)
    except WikiAPIError as e:
        click.echo(f"❌ Discussion check failed: {e}", err=True)
        sys.exit(1)

    for thread in threads:
        marker = "🟢" if thread.is_open else "⚪"
        click.echo(f"{marker} {thread.topic} ({thread.status})")

    if any(thread.is_open for thread in threads):
        click.echo(f"[[{title}]] has open discussions")
    else:
        click.echo(f"[[{title}]] has no open discussions")


@cli.command()
@click.argument('old_title')
@click.argument('new_title')
@click.argument('source', type=click.File('r', encoding='utf-8'))
@click.option('--keep-display-text', is_flag=True, help='Keep the old title as visible text on bare links')
@click.option('--strict', is_flag=True, help='Do not allow whitespace around link titles')
def preview(old_title: str, new_title: str, source, keep_display_text: bool, strict: bool):
    """Rewrite the wikitext in SOURCE and print the result."""
    rewriter = LinkRewriter(old_title, new_title, keep_display_text, whitespace_tolerant=not strict)
    result = rewriter.rewrite(source.read())
    click.echo(result.text, nl=False)
    click.echo(f"{result.replacements} link(s) rewritten", err=True)


@cli.command()
@click.option('--path', 'config_path', default=DEFAULT_CONFIG_FILENAME, show_default=True,
              help='Where to write the configuration')
def init(config_path: str):
    """Interactively write a configuration file."""
    try:
        saved = prompt_for_config(Path(config_path))
    except (ValueError, ImportError, OSError) as e:
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)
    click.echo(f"✅ Configuration saved to {saved}")


if __name__ == '__main__':
    cli()
