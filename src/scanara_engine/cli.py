"""Typer CLI for Scanara-Engine."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(name="scanara", help="Scanara-Engine: HIPAA compliance audits for codebases")
console = Console()

_TIER_STYLES = {
    "Compliant": "bold green",
    "NeedsAttention": "bold yellow",
    "NonCompliant": "bold red",
}


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind host"),
    port: int = typer.Option(8080, help="Bind port"),
):
    """Start the Scanara-Engine API server."""
    import uvicorn
    from scanara_engine.app import create_app

    console.print(f"[bold green]Starting Scanara-Engine on {host}:{port}[/bold green]")
    uvicorn.run(create_app(), host=host, port=port)


@app.command()
def health(
    url: str = typer.Option("http://localhost:8080", help="Server URL"),
):
    """Check Scanara-Engine server health."""
    import httpx

    try:
        resp = httpx.get(f"{url}/health", timeout=5)
        data = resp.json()
        console.print(f"[bold green]{data['status']}[/bold green] - v{data['version']}")
    except (httpx.HTTPError, ValueError, KeyError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def audit(
    path: Path = typer.Argument(Path("."), help="Project directory to audit"),
    project_name: Optional[str] = typer.Option(
        None, "--project-name", help="Project name, required for a key not yet bound to a project"
    ),
    server: Optional[str] = typer.Option(None, help="API base URL (default SCANARA_CLIENT_SERVER_URL)"),
    api_key: Optional[str] = typer.Option(None, help="Project API key (default SCANARA_CLIENT_API_KEY)"),
):
    """Send a local codebase for a compliance audit and print the result."""
    from scanara_engine.client import ScanaraClient

    if not path.is_dir():
        console.print(f"[bold red]Error:[/bold red] {path} is not a directory")
        raise typer.Exit(1)

    with ScanaraClient(server_url=server, api_key=api_key) as client:
        if not client.api_key:
            console.print("[bold red]Error:[/bold red] no API key configured")
            raise typer.Exit(1)

        files = client.collect_files(path)
        if not files:
            console.print(f"[bold red]Error:[/bold red] no code files found under {path}")
            raise typer.Exit(1)
        console.print(f"Collected {len(files)} files from {path}; analyzing...")

        result = client.run_audit(files, project_name=project_name or path.resolve().name)

    if not result.success:
        console.print(f"[bold red]{result.code}[/bold red] - {result.message}")
        raise typer.Exit(1)

    style = _TIER_STYLES.get(result.compliance_tier or "", "bold")
    console.print(
        f"[{style}]{result.compliance_tier}[/{style}] - "
        f"score {result.compliance_score:.1f} (audit {result.audit_id})"
    )

    if result.scores:
        table = Table(title="Scores")
        table.add_column("Category")
        table.add_column("Score", justify="right")
        for name, value in result.scores.items():
            table.add_row(name, str(value))
        console.print(table)

    top = result.summary.get("top_3_findings") or []
    for finding in top:
        if isinstance(finding, dict):
            console.print(
                f"  [bold]{finding.get('severity', '')}[/bold] {finding.get('title', '')}"
            )


if __name__ == "__main__":
    app()
