# Copyright 2025 thestill.me
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Command-line interface for Vial.

Commands:
    vial serve               Run the API server
    vial publish-scheduled   Run the scheduled-publish sweep once
    vial stats               Print dashboard statistics
    vial watch               Follow a running server's episode list
"""

import sys
import time

import click

from .client import EpisodeStore, VialClient, VialClientError
from .logging import configure_structlog
from .media import create_media_store
from .repositories.database import create_repositories
from .services import EpisodeService, StatsService
from .utils.config import load_config


class CLIContext:
    """Container for CLI dependency injection with type safety."""

    def __init__(self, config, repositories, media_store, episode_service, stats_service):
        self.config = config
        self.repositories = repositories
        self.media_store = media_store
        self.episode_service = episode_service
        self.stats_service = stats_service


@click.group()
@click.option("--config", "-c", help="Path to .env file")
@click.pass_context
def main(ctx, config):
    """Vial - podcast publishing and listening platform"""
    configure_structlog()

    try:
        config_obj = load_config(config)
        repositories = create_repositories(config_obj)
        media_store = create_media_store(config_obj)
        episode_service = EpisodeService(
            repositories.episode,
            media_store,
            timezone=config_obj.timezone,
            max_audio_bytes=config_obj.max_audio_bytes,
        )
        stats_service = StatsService(repositories.episode, repositories.listener)
        ctx.obj = CLIContext(config_obj, repositories, media_store, episode_service, stats_service)
    except Exception as e:
        click.echo(f"❌ Configuration error: {e}", err=True)
        ctx.exit(1)


@main.command()
@click.option("--host", default=None, help="Host to bind to (default: HOST or 127.0.0.1)")
@click.option("--port", "-p", type=int, default=None, help="Port to listen on (default: PORT or 8000)")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
@click.pass_context
def serve(ctx, host, port, reload):
    """Start the API server.

    Examples:
        vial serve                      # Start on localhost:8000
        vial serve --port 8080          # Custom port
        vial serve --host 0.0.0.0       # Bind to all interfaces
    """
    if ctx.obj is None:
        click.echo("❌ Configuration not loaded. Please check your setup.", err=True)
        ctx.exit(1)

    import uvicorn

    from .web.app import create_app

    config = ctx.obj.config
    host = host or config.host
    port = port or config.port

    click.echo("🌐 Starting Vial server...")
    click.echo(f"   Host: {host}")
    click.echo(f"   Port: {port}")
    click.echo(f"   Database: {config.database_path}")
    click.echo(f"   Media backend: {config.media_backend}")
    click.echo(f"   Timezone: {config.timezone}")
    click.echo("")
    click.echo(f"📚 API Docs: http://{host}:{port}/docs")
    click.echo("")

    if reload:
        uvicorn.run("vial.web.app:create_app", factory=True, host=host, port=port, reload=True, log_level="info")
    else:
        uvicorn.run(
            create_app(
                config,
                repositories=ctx.obj.repositories,
                media_store=ctx.obj.media_store,
            ),
            host=host,
            port=port,
            log_level="info",
        )


@main.command("publish-scheduled")
@click.pass_context
def publish_scheduled(ctx):
    """Publish every scheduled episode whose time has come.

    Safe to run from cron as often as you like: episodes that are already
    published are left alone.
    """
    if ctx.obj is None:
        click.echo("❌ Configuration not loaded. Please check your setup.", err=True)
        ctx.exit(1)

    result = ctx.obj.episode_service.publish_scheduled()

    click.echo(f"Checked {result.checked} scheduled episode(s)")
    for episode_id in result.published:
        click.echo(f"  ✓ Published {episode_id}")
    for failure in result.failed:
        click.echo(f"  ✗ {failure.episode_id}: {failure.error}", err=True)

    click.echo(f"✓ Published {len(result.published)} episode(s)")
    if result.failed:
        ctx.exit(1)


@main.command()
@click.pass_context
def stats(ctx):
    """Show episode and listener statistics"""
    if ctx.obj is None:
        click.echo("❌ Configuration not loaded. Please check your setup.", err=True)
        ctx.exit(1)

    stats = ctx.obj.stats_service.get_stats()

    click.echo("Vial Status")
    click.echo("=" * 40)
    click.echo(f"Listeners: {stats.total_listeners} ({stats.active_listeners} active)")
    click.echo(f"Episodes: {stats.total_episodes}")
    click.echo(f"  Published: {stats.published_episodes} ({stats.hidden_episodes} hidden)")
    click.echo(f"  Scheduled: {stats.scheduled_episodes}")
    click.echo(f"  Drafts: {stats.draft_episodes}")
    click.echo(f"Total listens: {stats.total_listens}")
    click.echo(f"Last update: {stats.last_update}")


@main.command()
@click.option("--url", default=None, help="Server base URL (default: APP_URL)")
@click.option("--email", "-e", required=True, help="Admin account email")
@click.password_option("--password", confirmation_prompt=False, help="Admin account password")
@click.option("--interval", "-i", type=float, default=None, help="Seconds between change checks")
@click.pass_context
def watch(ctx, url, email, password, interval):
    """Follow the episode list of a running server.

    Prints the list once, then checks the change stamp every interval and
    prints the list again whenever it moves. Stop with Ctrl+C.
    """
    if ctx.obj is None:
        click.echo("❌ Configuration not loaded. Please check your setup.", err=True)
        ctx.exit(1)

    config = ctx.obj.config
    url = url or config.app_url
    interval = interval or config.poll_interval_seconds

    with VialClient(url) as client:
        try:
            client.login(email, password)
            store = EpisodeStore(client)
            store.load()
        except VialClientError as e:
            click.echo(f"❌ {e.message}", err=True)
            ctx.exit(1)

        def show(server_ts: int) -> None:
            store.load()
            _print_episodes(store)

        _print_episodes(store)
        poller = store.watch(interval)
        poller.on_change = show

        click.echo(f"👀 Watching {url} every {interval:g}s (Ctrl+C to stop)")
        try:
            with poller:
                while poller.running:
                    time.sleep(0.5)
        except KeyboardInterrupt:
            click.echo("")


def _print_episodes(store: EpisodeStore) -> None:
    click.echo(f"\n{len(store.episodes)} episode(s) at {store.last_update}")
    for episode in store.episodes:
        visibility = "" if episode.is_public else " [hidden]"
        click.echo(f"  {episode.status.value:<10} {episode.title} ({episode.listens} listens){visibility}")
    sys.stdout.flush()


if __name__ == "__main__":
    main()
