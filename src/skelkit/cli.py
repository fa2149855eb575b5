"""CLI for the skelkit skeleton installer."""

import os
import sys
from pathlib import Path
from typing import NoReturn, Optional

import click
from rich.console import Console
from rich.table import Table

from . import __version__
from .catalog import QuestionId
from .config import InstallerConfig, load_config
from .errors import InstallerError
from .logging_config import setup_logging
from .session import InstallSession
from .skeleton import create_project


console = Console()


def _session(ctx: click.Context, project_root: str) -> InstallSession:
    config: InstallerConfig = ctx.obj["config"]
    return InstallSession.open(Path(project_root), config=config)


def _fail(e: Exception) -> NoReturn:
    console.print(f"[red]Error: {e}[/red]")
    sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="skelkit")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Installer config (YAML)")
@click.option("--verbose", "-v", is_flag=True, help="Also log to stderr")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], verbose: bool):
    """skelkit – pick a container, router and renderer for a Mezzio skeleton."""
    config = load_config(config_path)
    setup_logging(log_dir=config.log_dir, level="DEBUG" if verbose else config.log_level, console=verbose)
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@cli.command()
@click.argument("project_root", type=click.Path(file_okay=False))
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing composer.json")
@click.pass_context
def new(ctx: click.Context, project_root: str, force: bool):
    """Create the base skeleton in PROJECT_ROOT."""
    try:
        catalog = ctx.obj["config"].load_catalog()
        written = create_project(Path(project_root), catalog_version=catalog.version, overwrite=force)
    except (InstallerError, OSError) as e:
        _fail(e)

    console.print(f"[green]✓ Created skeleton in {project_root}[/green] ({len(written)} files)")
    console.print("\nNext steps:")
    console.print(f"  skelkit answer {project_root} install-type flat")
    console.print(f"  skelkit install {project_root} --container 3 --router 2")


@cli.command()
@click.argument("question")
@click.pass_context
def options(ctx: click.Context, question: str):
    """List the options for QUESTION."""
    try:
        catalog = ctx.obj["config"].load_catalog()
        q = catalog.question(question)
    except (InstallerError, OSError) as e:
        _fail(e)

    table = Table(title=q.prompt or q.id)
    table.add_column("Code", style="cyan")
    table.add_column("Name")
    table.add_column("Docs", style="blue")
    table.add_column("Provider", style="dim")

    for option in q.options:
        marker = " (default)" if option.code == q.default else ""
        table.add_row(str(option.code) + marker, option.name, option.docs, option.provider or "-")

    console.print(table)
    if not q.required:
        console.print("[dim]Answer 'n' to skip this question.[/dim]")
    if q.custom_package:
        console.print("[dim]A custom package may be given as vendor/package[:constraint].[/dim]")


@cli.command()
@click.argument("project_root", type=click.Path(exists=True, file_okay=False))
@click.argument("question")
@click.argument("value")
@click.pass_context
def answer(ctx: click.Context, project_root: str, question: str, value: str):
    """Answer a single QUESTION with VALUE."""
    try:
        session = _session(ctx, project_root)
        record = session.answer(question, value)
    except (InstallerError, OSError) as e:
        _fail(e)

    if record is None:
        console.print(f"[yellow]Skipped {question}[/yellow]")
    else:
        console.print(f"[green]✓ {question} = {record.code}[/green]")


@cli.command()
@click.argument("project_root", type=click.Path(file_okay=False))
@click.option("--layout", "-l", help="Install layout (flat|modular)")
@click.option("--container", "-c", help="Container option code")
@click.option("--router", "-r", help="Router option code")
@click.option("--template-engine", "-t", "template_engine", help="Template engine option code, or n")
@click.option("--error-handler", "-e", "error_handler", help="Error handler option code, or n")
@click.option("--finalize/--no-finalize", default=False, help="Finalize after answering")
@click.pass_context
def install(
    ctx: click.Context,
    project_root: str,
    layout: Optional[str],
    container: Optional[str],
    router: Optional[str],
    template_engine: Optional[str],
    error_handler: Optional[str],
    finalize: bool,
):
    """Answer several questions in one go, creating the skeleton if needed."""
    config: InstallerConfig = ctx.obj["config"]
    root = Path(project_root)
    try:
        if not (root / "composer.json").exists():
            create_project(root, catalog_version=config.load_catalog().version)
            console.print(f"[green]✓ Created skeleton in {root}[/green]")

        session = _session(ctx, project_root)
        plan = []
        if layout or session.layout is None:
            plan.append((QuestionId.INSTALL_TYPE.value, layout or config.default_layout))
        plan += [
            (QuestionId.CONTAINER.value, container),
            (QuestionId.ROUTER.value, router),
            (QuestionId.TEMPLATE_ENGINE.value, template_engine),
            (QuestionId.ERROR_HANDLER.value, error_handler),
        ]

        for question, value in plan:
            if value is None:
                continue
            record = session.answer(question, value)
            if record is None:
                console.print(f"  [yellow]- {question} skipped[/yellow]")
            else:
                console.print(f"  [green]✓[/green] {question} = {record.code}")

        if finalize:
            session.finalize()
            console.print("[green]✓ Installation finalized[/green]")
    except (InstallerError, OSError) as e:
        _fail(e)


@cli.command()
@click.argument("project_root", type=click.Path(exists=True, file_okay=False))
@click.pass_context
def status(ctx: click.Context, project_root: str):
    """Show the answers recorded for PROJECT_ROOT."""
    try:
        session = _session(ctx, project_root)
    except (InstallerError, OSError) as e:
        _fail(e)

    table = Table(title=f"{project_root} ({session.phase.value})")
    table.add_column("Question", style="cyan")
    table.add_column("Answer")
    table.add_column("Name")
    table.add_column("Files", style="dim")

    for question_id, record in session.state.answers.items():
        option = session.catalog.question(question_id).find(record.code)
        name = option.name if option else next(iter(record.packages), "custom")
        table.add_row(question_id, str(record.code), name, str(len(record.files)))

    console.print(table)
    if session.state.broken:
        console.print(f"[red]Session is broken: {session.state.broken}[/red]")


@cli.command()
@click.argument("project_root", type=click.Path(exists=True, file_okay=False))
@click.pass_context
def finalize(ctx: click.Context, project_root: str):
    """Check the answers and strip installer metadata."""
    try:
        session = _session(ctx, project_root)
        session.finalize()
    except (InstallerError, OSError) as e:
        _fail(e)
    console.print("[green]✓ Installation finalized[/green]")


@cli.command()
@click.argument("project_root", type=click.Path(exists=True, file_okay=False))
@click.option("--path", "-p", "request_path", default="/", help="Request path")
@click.pass_context
def preview(ctx: click.Context, project_root: str, request_path: str):
    """Request PATH from the scaffolded application and print the response."""
    from fastapi.testclient import TestClient

    from .preview import create_preview_app

    config: InstallerConfig = ctx.obj["config"]
    app = create_preview_app(Path(project_root), config.load_catalog(), config.state_filename)
    with TestClient(app) as client:
        response = client.get(request_path)

    style = "green" if response.status_code == 200 else "red"
    console.print(f"[{style}]HTTP {response.status_code}[/{style}] {response.headers.get('content-type', '')}")
    console.print(response.text, markup=False, highlight=False, soft_wrap=True)
    if response.status_code != 200:
        sys.exit(1)


@cli.command()
@click.argument("project_root", type=click.Path(exists=True, file_okay=False))
@click.option("--host", "-h", default=lambda: os.environ.get("SKELKIT_PREVIEW_HOST", "127.0.0.1"), help="Bind host")
@click.option("--port", "-p", default=lambda: int(os.environ.get("SKELKIT_PREVIEW_PORT", "8080")), type=int,
              help="Bind port")
@click.pass_context
def serve(ctx: click.Context, project_root: str, host: str, port: int):
    """Serve the scaffolded application's home page over HTTP."""
    import uvicorn

    from .preview import create_preview_app

    config: InstallerConfig = ctx.obj["config"]
    app = create_preview_app(Path(project_root), config.load_catalog(), config.state_filename)
    console.print(f"[green]Serving {project_root} on http://{host}:{port}[/green]")
    uvicorn.run(app, host=host, port=port)


def main(argv=None):
    """Main entry point."""
    cli(argv)


if __name__ == "__main__":
    main()
