"""Typer CLI for baas-engine."""

import asyncio
import secrets
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(name="baas", help="baas-engine: tenant schema provisioning behind a REST gateway")
console = Console()


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind host"),
    port: int = typer.Option(8080, help="Bind port"),
):
    """Start the baas-engine API server."""
    import uvicorn
    from baas_engine.app import create_app

    console.print(f"[bold green]Starting baas-engine on {host}:{port}[/bold green]")
    uvicorn.run(create_app(), host=host, port=port)


@app.command("gen-encryption-key")
def gen_encryption_key():
    """Print a random 256-bit key for BAAS_ENCRYPTION_KEY_HEX."""
    console.print(secrets.token_hex(32))


@app.command()
def schemas(
    config_file: Path = typer.Argument(..., help="Gateway config file"),
):
    """List the schemas the gateway config currently exposes."""
    from baas_engine.common.exceptions import GatewayConfigError
    from baas_engine.gateway.config_file import GatewayConfigDocument

    try:
        document = GatewayConfigDocument.parse(config_file.read_text(encoding="utf-8"))
        exposed = document.db_schemas
    except (OSError, GatewayConfigError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    table = Table(title=str(config_file))
    table.add_column("#", justify="right")
    table.add_column("schema")
    for index, schema in enumerate(exposed, start=1):
        table.add_row(str(index), schema)
    console.print(table)


@app.command("init-db")
def init_db():
    """Create metadata tables (development; use alembic in production)."""
    from baas_engine.common.config import get_settings
    from baas_engine.common.database import DatabaseManager

    async def _run() -> None:
        db = DatabaseManager(get_settings())
        await db.init()
        try:
            await db.create_all()
        finally:
            await db.close()

    asyncio.run(_run())
    console.print("[bold green]Metadata tables created[/bold green]")


@app.command()
def health(
    url: str = typer.Option("http://localhost:8080", help="Server URL"),
):
    """Check baas-engine server health."""
    import httpx

    try:
        resp = httpx.get(f"{url}/health", timeout=5)
        data = resp.json()
        console.print(f"[bold green]{data['status']}[/bold green] v{data['version']}")
    except (httpx.HTTPError, ValueError, KeyError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
