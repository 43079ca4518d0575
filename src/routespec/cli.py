from __future__ import annotations

import importlib
import sys
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from routespec.config import get_settings
from routespec.errors import RouteSpecError
from routespec.grammar.parser import parse_declaration
from routespec.logs import configure_logging
from routespec.naming import companion_path, operation_id
from routespec.openapi.metadata import PackageMetadata
from routespec.orchestrator.pipeline import GenerateResult, generate, spec_hash


app = typer.Typer(no_args_is_help=True, add_completion=False)

console = Console()
err_console = Console(stderr=True)


def _read_declaration(declaration: Optional[str], file: Optional[str]) -> str:
    if file:
        path = Path(file).expanduser()
        if not path.is_file():
            raise typer.BadParameter(f"Declaration file does not exist: {path}")
        return path.read_text(encoding="utf-8")
    if not declaration:
        raise typer.BadParameter("Pass a DECLARATION or --file")
    return declaration


def _metadata(
    package: Optional[str],
    name: Optional[str],
    version: Optional[str],
    description: str,
    repository: str,
    homepage: str,
) -> PackageMetadata:
    if package:
        return PackageMetadata.from_distribution(package)
    return PackageMetadata(
        name=name or "",
        version=version or "",
        description=description,
        repository_url=repository,
        homepage_url=homepage,
    )


def _namespace(module: Optional[str]) -> Optional[dict[str, Any]]:
    if not module:
        return None
    # --module may name a module in the project root that is not installed
    cwd = str(Path.cwd())
    if cwd not in sys.path:
        sys.path.insert(0, cwd)
    try:
        return vars(importlib.import_module(module))
    except ImportError as exc:
        raise typer.BadParameter(f"Cannot import --module {module}: {exc}") from exc


def _run(
    declaration: Optional[str],
    file: Optional[str],
    module: Optional[str],
    package: Optional[str],
    name: Optional[str],
    version: Optional[str],
    description: str,
    repository: str,
    homepage: str,
    json_path: Optional[str],
) -> GenerateResult:
    settings = get_settings()
    configure_logging(settings.log_level, console=err_console)
    if json_path:
        settings = settings.model_copy(update={"json_path": json_path})

    text = _read_declaration(declaration, file)
    try:
        return generate(
            text,
            _metadata(package, name, version, description, repository, homepage),
            namespace=_namespace(module),
            settings=settings,
        )
    except RouteSpecError as exc:
        err_console.print(f"[bold red]error[/bold red]: {escape(str(exc))}", highlight=False)
        raise typer.Exit(code=1)


_DECL = typer.Argument(None, help="Route declaration, e.g. 'spec: hooks::tweak; users::list'")
_FILE = typer.Option(None, "--file", "-f", help="Read the declaration from a file")
_MODULE = typer.Option(None, help="Module whose globals resolve single-segment references (imported with the working directory on sys.path)")
_PACKAGE = typer.Option(None, help="Installed distribution to read metadata from")
_NAME = typer.Option(None, help="Package name (document title)")
_VERSION = typer.Option(None, help="Package version")
_DESCRIPTION = typer.Option("", help="Package description")
_REPOSITORY = typer.Option("", help="Repository URL")
_HOMEPAGE = typer.Option("", help="Homepage URL")
_JSON_PATH = typer.Option(None, help="Path the document is served at (default from ROUTESPEC_JSON_PATH)")


@app.command()
def parse(
    declaration: Optional[str] = _DECL,
    file: Optional[str] = _FILE,
) -> None:
    text = _read_declaration(declaration, file)
    try:
        decl = parse_declaration(text)
    except RouteSpecError as exc:
        err_console.print(f"[bold red]error[/bold red]: {escape(str(exc))}", highlight=False)
        raise typer.Exit(code=1)

    console.print(f"Mutator: [bold]{decl.mutator or '-'}[/bold]")
    console.print(f"Routes: [bold]{len(decl.routes)}[/bold]")

    table = Table(show_header=True, header_style="bold")
    table.add_column("ROUTE")
    table.add_column("OPERATION ID")
    table.add_column("COMPANION")
    for r in decl.routes:
        table.add_row(str(r), operation_id(r), str(companion_path(r)))
    console.print(table)


@app.command("generate")
def generate_cmd(
    declaration: Optional[str] = _DECL,
    file: Optional[str] = _FILE,
    module: Optional[str] = _MODULE,
    package: Optional[str] = _PACKAGE,
    name: Optional[str] = _NAME,
    version: Optional[str] = _VERSION,
    description: str = _DESCRIPTION,
    repository: str = _REPOSITORY,
    homepage: str = _HOMEPAGE,
    json_path: Optional[str] = _JSON_PATH,
    out: Optional[str] = typer.Option(None, help="Write the document JSON here (default: stdout)"),
    print_hash: bool = typer.Option(False, "--hash", help="Print the document hash"),
    check: Optional[str] = typer.Option(None, help="Exit 2 if the document hash differs from this"),
) -> None:
    result = _run(declaration, file, module, package, name, version, description, repository, homepage, json_path)
    text = result.document.to_json()
    h = spec_hash(result.document)

    if out:
        out_path = Path(out).expanduser()
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text + "\n", encoding="utf-8")
        console.print(f"[bold green]Wrote[/bold green] OpenAPI document to: {out_path}")
    elif not print_hash and not check:
        console.print_json(text)

    if print_hash:
        console.print(h)

    if check:
        if h != check.strip():
            err_console.print(f"Spec hash mismatch: expected={check.strip()} current={h}")
            raise typer.Exit(code=2)
        console.print(f"Spec hash OK: {h}")


@app.command()
def routes(
    declaration: Optional[str] = _DECL,
    file: Optional[str] = _FILE,
    module: Optional[str] = _MODULE,
    package: Optional[str] = _PACKAGE,
    name: Optional[str] = _NAME,
    version: Optional[str] = _VERSION,
    description: str = _DESCRIPTION,
    repository: str = _REPOSITORY,
    homepage: str = _HOMEPAGE,
    json_path: Optional[str] = _JSON_PATH,
) -> None:
    result = _run(declaration, file, module, package, name, version, description, repository, homepage, json_path)

    table = Table(show_header=True, header_style="bold")
    table.add_column("METHODS", no_wrap=True)
    table.add_column("PATH")
    table.add_column("ENDPOINT")
    for r in result.routes:
        methods = ",".join(sorted(getattr(r, "methods", None) or ()))
        table.add_row(methods, getattr(r, "path", ""), getattr(r, "name", ""))

    console.print(f"Routes: [bold]{len(result.routes)}[/bold]")
    console.print(table)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
