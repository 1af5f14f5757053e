"""PrintPalooza operator CLI.

Usage:
    printpalooza serve      Run the API server in the foreground
    printpalooza status     Show readiness of a running server
    printpalooza init-db    Create the database schema
    printpalooza version    Show the installed version
"""

import httpx
import typer
from rich.console import Console

from src.utils.paths import ensure_dirs_exist


app = typer.Typer(
    name="printpalooza",
    help="PrintPalooza order conversation server",
    no_args_is_help=True,
)

console = Console()

_CHECK_STYLES = {"ok": "green", "configured": "green", "degraded": "yellow", "error": "red"}


@app.command()
def version():
    """Show the installed PrintPalooza version."""
    from importlib.metadata import version as pkg_version

    try:
        v = pkg_version("printpalooza")
    except Exception:
        v = "unknown"
    console.print(f"[bold]PrintPalooza[/bold] v{v}")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", help="Bind port"),
    log_level: str = typer.Option("info", "--log-level", help="uvicorn log level"),
):
    """Run the API server in the foreground with a single uvicorn worker."""
    import uvicorn

    ensure_dirs_exist()
    console.print(f"[bold]Starting PrintPalooza on {host}:{port}[/bold]")
    uvicorn.run(
        "src.api.main:app",
        host=host,
        port=port,
        workers=1,
        log_level=log_level,
        lifespan="on",
    )


@app.command()
def status(
    url: str = typer.Option("http://127.0.0.1:8000", "--url", help="Server base URL"),
    timeout: float = typer.Option(5.0, "--timeout", help="Request timeout in seconds"),
):
    """Query /readyz and print each dependency check."""
    try:
        resp = httpx.get(f"{url.rstrip('/')}/readyz", timeout=timeout)
    except httpx.HTTPError as e:
        console.print(f"[red]Server not reachable at {url}:[/red] {type(e).__name__}")
        raise typer.Exit(1)

    try:
        body = resp.json()
    except ValueError:
        console.print(f"[red]Unexpected response ({resp.status_code}) from {url}[/red]")
        raise typer.Exit(1)

    overall = body.get("status", "unknown")
    style = "green" if overall == "ready" else "yellow" if overall == "degraded" else "red"
    console.print(
        f"[{style}]Server {overall}[/{style}] (up {body.get('uptime_seconds', 0)}s)"
    )

    from rich.table import Table

    table = Table(title="Checks")
    table.add_column("Check", style="cyan")
    table.add_column("Status")
    table.add_column("Detail", style="dim")
    for name, check in body.get("checks", {}).items():
        state = check.get("status", "?")
        detail = check.get("message") or ", ".join(check.get("missing", []))
        table.add_row(name, f"[{_CHECK_STYLES.get(state, 'white')}]{state}[/]", detail)
    console.print(table)

    if resp.status_code >= 500:
        raise typer.Exit(1)


@app.command("init-db")
def init_db_cmd():
    """Create tables and indexes."""
    from src.db.connection import get_database_url, init_db

    ensure_dirs_exist()
    init_db()
    console.print(f"[green]Database ready:[/green] {get_database_url()}")


if __name__ == "__main__":
    app()
