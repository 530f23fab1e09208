#!/usr/bin/env python3
"""
Newsdesk - News Automation Back End
===================================

Main application entry point with CLI interface for running pipeline steps.

Usage:
    python main.py --help                    # Show all commands
    python main.py check-config              # Validate configuration
    python main.py init-db                   # Initialize database
    python main.py add-source NAME URL       # Register an RSS source
    python main.py fetch-news                # Run the scheduled RSS fetch
    python main.py monitor                   # Analyze sources and dispatch
    python main.py reject-stale              # Time out unmoderated news
    python main.py rewrite NEWS_ID           # Rewrite and publish one item
    python main.py post-video NEWS_ID FILE   # Cross-post a Telegram video
    python main.py serve                     # Start the HTTP API
"""

import sys
import asyncio
import json
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from newsdesk.config.settings import get_settings
from newsdesk.database.schema import DatabaseSchema
from newsdesk.database.connection import get_db_manager
from newsdesk.database.models import NewsSource
from newsdesk.storage.prompt_repository import SettingsRepository
from newsdesk.utils.logging import configure_application_logging
from newsdesk.utils.exceptions import NewsdeskError
from newsdesk.utils.validators import URLValidator

console = Console()
logger = logging.getLogger(__name__)


def _setup_logging(debug: bool) -> None:
    settings = get_settings()
    configure_application_logging(
        log_level="DEBUG" if debug else settings.get_effective_log_level(),
        log_file=settings.logging.file_path,
        enable_console=settings.logging.console_logging,
        structured_logging=settings.logging.structured_logging,
        max_file_size_mb=settings.logging.max_file_size_mb,
        backup_count=settings.logging.backup_count,
    )


def _services():
    from newsdesk.api.services import Services
    return Services(get_db_manager())


def _print_json(data) -> None:
    console.print_json(json.dumps(data, ensure_ascii=False, default=str))


@click.group(invoke_without_command=True)
@click.option('--debug', is_flag=True, help='Enable debug mode')
@click.pass_context
def cli(ctx, debug):
    """Newsdesk - RSS ingestion, AI moderation and publishing."""
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
    else:
        _setup_logging(debug)


@cli.command()
def check_config():
    """Validate configuration and report which integrations are enabled."""
    console.print("[bold blue]🔧 Checking Newsdesk Configuration[/bold blue]")

    try:
        settings = get_settings()
        settings.validate_configuration()
    except Exception as e:
        console.print(f"[bold red]❌ Configuration error: {e}[/bold red]")
        sys.exit(1)

    table = Table(title="Configuration Status")
    table.add_column("Component", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Details")

    social = settings.social.configured_platforms()
    rows = [
        ("Database", True, f"Path: {settings.database.path}"),
        ("Logging", True, f"Level: {settings.logging.level}, File: {settings.logging.file_path}"),
        ("Telegram Bot", settings.telegram.is_configured,
         "Bot token and chat configured" if settings.telegram.is_configured else "Not configured"),
        ("Azure OpenAI", settings.azure.is_configured,
         f"Analysis: {settings.azure.analysis_deployment}" if settings.azure.is_configured else "Not configured"),
        ("Social", bool(social), ", ".join(social) or "No platforms configured"),
        ("Email", bool(settings.email.resend_api_key),
         f"To: {settings.email.admin_email}" if settings.email.resend_api_key else "Resend key not set"),
    ]
    for name, ok, details in rows:
        table.add_row(name, "✅ Ready" if ok else "⚠️ Disabled", details)

    console.print(table)
    console.print("[bold green]✅ Configuration is valid[/bold green]")


@cli.command()
def init_db():
    """Initialize database with schema."""
    console.print("[bold blue]🗄️ Initializing Newsdesk Database[/bold blue]")

    try:
        settings = get_settings()
        Path(settings.database.path).parent.mkdir(parents=True, exist_ok=True)

        schema = DatabaseSchema(settings.database.path)
        schema.create_tables()

        if not schema.verify_schema():
            console.print("[bold red]❌ Database schema verification failed[/bold red]")
            sys.exit(1)

        info = get_db_manager(settings.database.path).get_database_info()

        info_table = Table(title="Database Information")
        info_table.add_column("Table", style="cyan")
        info_table.add_column("Rows", style="green")
        for table_name, count in info['table_counts'].items():
            info_table.add_row(table_name, str(count))

        console.print("[bold green]✅ Database initialized successfully![/bold green]")
        console.print(info_table)

    except Exception as e:
        console.print(f"[bold red]❌ Database initialization error: {e}[/bold red]")
        sys.exit(1)


@cli.command()
@click.argument('name')
@click.argument('rss_url')
@click.option('--tier', default=1, help='Monitoring priority, lower runs first (default: 1)')
def add_source(name, rss_url, tier):
    """Register an RSS source."""
    try:
        rss_url = URLValidator.validate_url(rss_url, field_name="rss_url")
        services = _services()
        existing = services.source_repo.get_by_rss_url(rss_url)
        if existing:
            console.print(f"[yellow]Source already registered: {existing.name}[/yellow]")
            return
        source_id = services.source_repo.create_source(
            NewsSource(name=name, rss_url=rss_url, tier=tier)
        )
        console.print(f"[bold green]✅ Added source {name} (id {source_id})[/bold green]")
    except NewsdeskError as e:
        console.print(f"[bold red]❌ {e.user_message}[/bold red]")
        sys.exit(1)


@cli.command()
@click.argument('state', type=click.Choice(['on', 'off']))
def auto_publish(state):
    """Switch auto-publishing of qualified RSS articles on or off."""
    services = _services()
    services.settings_repo.set(SettingsRepository.AUTO_PUBLISH_KEY, "true" if state == 'on' else "false")
    console.print(f"[bold green]✅ Auto-publish {state}[/bold green]")


@cli.command()
def fetch_news():
    """Fetch all active RSS sources and pre-moderate new items."""
    console.print("[bold blue]📡 Fetching RSS sources[/bold blue]")
    try:
        report = asyncio.run(_services().news_fetcher.run())
    except NewsdeskError as e:
        console.print(f"[bold red]❌ {e.user_message}[/bold red]")
        sys.exit(1)

    table = Table(title=report.message)
    table.add_column("Source", style="cyan")
    table.add_column("New", style="green")
    table.add_column("Approved")
    table.add_column("Rejected")
    table.add_column("Error", style="red")
    for result in report.results:
        table.add_row(result.source, str(result.processed), str(result.approved),
                      str(result.rejected), result.error or "")
    console.print(table)
    console.print(f"Total processed: {report.total_processed}")


@cli.command()
@click.option('--batch-index', default=0, help='Zero-based batch number (default: 0)')
@click.option('--batch-size', default=None, type=int, help='Sources per batch (default: all)')
def monitor(batch_index, batch_size):
    """Analyze the latest articles of each source and send qualified ones to Telegram."""
    console.print("[bold blue]🔎 Monitoring RSS sources[/bold blue]")
    try:
        report = asyncio.run(_services().monitor.run(batch_index, batch_size))
    except NewsdeskError as e:
        console.print(f"[bold red]❌ {e.user_message}[/bold red]")
        sys.exit(1)
    _print_json(report.to_dict())


@cli.command()
@click.option('--hours', default=None, type=int, help='Timeout in hours (default from config)')
def reject_stale(hours):
    """Reject approved news left unmoderated past the timeout."""
    result = asyncio.run(_services().stale_rejector.run(hours))
    console.print(f"[bold green]✅ Rejected {result.rejected_count} stale news items[/bold green]")
    for news_id in result.rejected_ids:
        console.print(f"  • {news_id}")


@cli.command()
@click.argument('news_id')
def rewrite(news_id):
    """Rewrite one news item in all languages and publish it."""
    try:
        result = asyncio.run(_services().rewriter.rewrite(news_id))
    except NewsdeskError as e:
        console.print(f"[bold red]❌ {e.user_message}[/bold red]")
        sys.exit(1)

    table = Table(title=f"Published {news_id}")
    table.add_column("Language", style="cyan")
    table.add_column("Title")
    table.add_column("Slug", style="green")
    for language, data in result.translations.items():
        table.add_row(language, data["title"], data["slug"])
    console.print(table)


@cli.command()
@click.argument('news_id')
@click.argument('file_id')
@click.option('--platform', '-p', 'platforms', multiple=True,
              type=click.Choice(['linkedin', 'facebook', 'youtube']),
              help='Target platform (repeatable, default: all configured)')
@click.option('--language', default='en', type=click.Choice(['en', 'no', 'ua']))
def post_video(news_id, file_id, platforms, language):
    """Cross-post a Telegram video for a published news item."""
    settings = get_settings()
    platforms = list(platforms) or settings.social.configured_platforms()
    if not platforms:
        console.print("[bold red]❌ No social platforms configured[/bold red]")
        sys.exit(1)

    try:
        report = asyncio.run(_services().cross_poster.post_video(news_id, file_id, platforms, language))
    except NewsdeskError as e:
        console.print(f"[bold red]❌ {e.user_message}[/bold red]")
        sys.exit(1)

    for result in report.results:
        if result.skipped:
            console.print(f"  ⏭️ {result.platform}: already posted {result.post_url or ''}")
        elif result.success:
            console.print(f"  ✅ {result.platform}: {result.post_url}")
        else:
            console.print(f"  ❌ {result.platform}: {result.error}")
    if not report.success:
        sys.exit(1)


@cli.command()
@click.option('--host', default='0.0.0.0', help='Bind address (default: 0.0.0.0)')
@click.option('--port', default=8000, help='Port (default: 8000)')
def serve(host, port):
    """Start the HTTP API."""
    import uvicorn
    from newsdesk.api.app import create_app

    console.print(f"[bold blue]🚀 Serving Newsdesk API on {host}:{port}[/bold blue]")
    uvicorn.run(create_app(), host=host, port=port, log_level="info")


if __name__ == "__main__":
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]👋 Newsdesk interrupted by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"\n[bold red]❌ Unexpected error: {e}[/bold red]")
        sys.exit(1)
