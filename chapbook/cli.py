"""CLI entry point for chapbook.

Every stage command reads JSON-lines documents on stdin and writes JSON-lines
on stdout, so stages compose with shell pipes:

    chapbook read posts/*.md | chapbook frontmatter | chapbook permalink | chapbook write
"""

from __future__ import annotations

import json
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.table import Table

from chapbook.config import ChapbookConfig, load_config
from chapbook.config.loader import CONFIG_FILENAME, DEFAULT_CONFIG_TEMPLATE
from chapbook.document.io import (
    read_documents,
    read_jsonl,
    read_stash,
    write_jsonl,
    write_stash,
)
from chapbook.document.models import Document
from chapbook.errors import ChapbookError, ParseError
from chapbook.log import configure_logging
from chapbook.output import DocWriter
from chapbook.pipeline import DocStream, ResultStream, SortKey
from chapbook.transform.taxonomy import generate_tag_index_doc
from chapbook.transform.template import JinjaRenderer

app = typer.Typer(
    name="chapbook",
    help="Document pipeline for static sites. Stages pass JSON-lines docs over stdin/stdout.",
)

config_app = typer.Typer(help="Manage chapbook configuration.")
app.add_typer(config_app, name="config")

# Global state
_config: ChapbookConfig | None = None

FailFast = Annotated[
    bool,
    typer.Option(
        "--fail-fast/--skip-errors",
        help="Stop at the first bad document, or log it and keep going",
    ),
]


def _get_config() -> ChapbookConfig:
    if _config is None:
        return load_config()
    return _config


def _console() -> Console:
    # Built per call so it follows whatever sys.stderr currently is
    return Console(stderr=True)


def _fail(message: str) -> typer.Exit:
    _console().print(f"[red]Error:[/red] {message}", highlight=False)
    return typer.Exit(1)


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to chapbook.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        raise _fail(str(e)) from e
    configure_logging(_config.log_level, _config.log_format)


def _policy(results: Iterable, fail_fast: bool) -> DocStream:
    stream = ResultStream(results)
    return stream.fail_fast() if fail_fast else stream.dump_errors()


def _stdin_docs(fail_fast: bool = True) -> DocStream:
    return _policy(read_jsonl(sys.stdin), fail_fast)


def _emit(docs: Iterable[Document]) -> None:
    """Drain docs to stdout, turning pipeline errors into exit code 1."""
    try:
        write_jsonl(docs, sys.stdout)
    except ChapbookError as e:
        raise _fail(str(e)) from e


def _template_context(cfg: ChapbookConfig, data_files: list[Path] | None) -> dict[str, Any]:
    """Context shared by every template: site settings plus data files."""
    try:
        data = _read_data_files(data_files or [])
    except ChapbookError as e:
        raise _fail(str(e)) from e
    return {
        "site": {
            "url": cfg.site_url,
            "title": cfg.site_title,
            "description": cfg.site_description,
            "author": cfg.site_author,
        },
        "data": {**cfg.data, **data},
    }


def _read_data_files(paths: list[Path]) -> dict[str, Any]:
    """Load JSON files into a map keyed by file stem."""
    data: dict[str, Any] = {}
    for path in paths:
        try:
            data[path.stem] = json.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ParseError(f"could not read data file {path}", cause=e) from e
        except json.JSONDecodeError as e:
            raise ParseError(f"invalid JSON in data file {path}", cause=e) from e
    return data


# ---------------------------------------------------------------------------
# I/O
# ---------------------------------------------------------------------------


@app.command()
def read(
    files: Annotated[list[Path], typer.Argument(help="Source files to load")],
    root: Annotated[
        Path | None, typer.Option("--root", help="Make id paths relative to this directory")
    ] = None,
    fail_fast: FailFast = True,
) -> None:
    """Read files into docs and print them as JSON lines."""
    _emit(_policy(read_documents(files, root=root), fail_fast))


@app.command()
def write(
    output_dir: Annotated[
        str | None, typer.Argument(help="Output directory (defaults to output_dir in config)")
    ] = None,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Show what would be written")] = False,
    fail_fast: FailFast = False,
) -> None:
    """Write doc content to output_dir / output_path."""
    cfg = _get_config()
    writer = DocWriter(output_dir or cfg.output_dir)
    try:
        report = writer.write_all(_stdin_docs(fail_fast), dry_run=dry_run)
    except ChapbookError as e:
        raise _fail(str(e)) from e

    table = Table(title="Dry Run" if dry_run else "Write")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="green")
    table.add_row("Written", str(len(report.written)))
    table.add_row("Errors", str(len(report.errors)))
    table.add_row("Duration", f"{report.duration:.2f}s")
    _console().print(table)

    if report.errors and fail_fast:
        raise typer.Exit(1)


@app.command()
def stash(
    file: Annotated[Path, typer.Argument(help="JSON file to write, e.g. build/posts.json")],
    fail_fast: FailFast = True,
) -> None:
    """Save the incoming docs to a single JSON file."""
    try:
        write_stash(_stdin_docs(fail_fast), file)
    except ChapbookError as e:
        raise _fail(str(e)) from e


@app.command()
def unstash(
    file: Annotated[Path, typer.Argument(help="JSON stash to read back")],
) -> None:
    """Print the docs from a stash as JSON lines."""
    try:
        docs = read_stash(file)
    except ChapbookError as e:
        raise _fail(str(e)) from e
    _emit(docs)


# ---------------------------------------------------------------------------
# Filtering and ordering
# ---------------------------------------------------------------------------


@app.command()
def sort(
    key: Annotated[SortKey, typer.Option("--key", help="Field to sort by")] = SortKey.created,
    asc: Annotated[bool, typer.Option("--asc", help="Sort ascending instead of descending")] = False,
    fail_fast: FailFast = True,
) -> None:
    """Sort docs. Ties keep their input order."""
    _emit(_stdin_docs(fail_fast).sort_by(key, ascending=asc))


@app.command()
def recent(
    limit: Annotated[int, typer.Argument(min=0, help="Number of docs to keep")] = 10,
    fail_fast: FailFast = True,
) -> None:
    """Keep the most recently created docs."""
    _emit(_stdin_docs(fail_fast).most_recent(limit))


@app.command()
def dedupe(fail_fast: FailFast = True) -> None:
    """Drop docs whose id_path was already seen."""
    _emit(_stdin_docs(fail_fast).dedupe())


@app.command()
def drafts(fail_fast: FailFast = True) -> None:
    """Remove drafts (file names starting with an underscore)."""
    _emit(_stdin_docs(fail_fast).remove_drafts())


@app.command("match")
def match_cmd(
    pattern: Annotated[str, typer.Argument(help="Glob matched against id_path, e.g. 'posts/*.md'")],
    fail_fast: FailFast = True,
) -> None:
    """Keep docs whose id_path matches a glob."""
    try:
        stream = _stdin_docs(fail_fast).filter_matching(pattern)
    except ChapbookError as e:
        raise _fail(str(e)) from e
    _emit(stream)


# ---------------------------------------------------------------------------
# Per-document stages
# ---------------------------------------------------------------------------


@app.command()
def frontmatter(
    uplift: Annotated[
        bool, typer.Option("--uplift/--no-uplift", help="Copy known meta keys onto doc fields")
    ] = True,
    fail_fast: FailFast = True,
) -> None:
    """Parse YAML frontmatter into meta and strip it from content."""
    _emit(_policy(_stdin_docs(fail_fast).parse_frontmatter(uplift=uplift), fail_fast))


@app.command()
def permalink(
    template: Annotated[
        str | None,
        typer.Option("--template", "-t", help="Permalink template (defaults to permalink.page)"),
    ] = None,
    nice: Annotated[
        bool, typer.Option("--nice", help="Use a nice path (name/index.html) instead")
    ] = False,
    fail_fast: FailFast = True,
) -> None:
    """Set output_path from a permalink template."""
    cfg = _get_config()
    docs = _stdin_docs(fail_fast)
    if nice:
        _emit(docs.set_nice_path())
    else:
        _emit(docs.set_permalink(template or cfg.permalink.page))


@app.command()
def summary(fail_fast: FailFast = True) -> None:
    """Fill in missing summaries from content as plain text."""
    _emit(_stdin_docs(fail_fast).auto_summary())


@app.command()
def wikilinks(
    transclude: Annotated[
        bool | None,
        typer.Option("--transclude/--no-transclude", help="Inline docs linked on a line by themselves"),
    ] = None,
    fail_fast: FailFast = True,
) -> None:
    """Render [[wikilinks]] between the incoming docs."""
    wl = _get_config().wikilink
    _emit(
        _stdin_docs(fail_fast).resolve_wikilinks(
            wl.link_template,
            wl.nolink_template,
            wl.transclude if transclude is None else transclude,
        )
    )


DataOption = Annotated[
    list[Path] | None,
    typer.Option("--data", "-d", help="JSON file exposed to templates under data.<stem>"),
]
TemplateDirOption = Annotated[
    str | None, typer.Option("--templates", help="Template directory (defaults to config)")
]


@app.command()
def markdown(fail_fast: FailFast = True) -> None:
    """Render doc content from CommonMark to HTML."""
    _emit(_stdin_docs(fail_fast).render_markdown())


@app.command()
def template(
    data: DataOption = None,
    template_dir: TemplateDirOption = None,
    in_content: Annotated[
        bool,
        typer.Option("--in-content", help="Render each doc's content as a template first"),
    ] = False,
    fail_fast: FailFast = True,
) -> None:
    """Render docs through their templates. Docs without one get <parent>.html."""
    cfg = _get_config()
    context = _template_context(cfg, data)
    renderer = JinjaRenderer(template_dir or cfg.template_dir)
    docs = _stdin_docs(fail_fast)
    if in_content:
        docs = _policy(docs.render_in_content(renderer, context), fail_fast)
    docs = docs.auto_template().render_template(renderer, context)
    _emit(_policy(docs, fail_fast))


@app.command()
def blog(
    permalink_template: Annotated[
        str | None,
        typer.Option("--permalink-template", help="Permalink template (defaults to permalink.page)"),
    ] = None,
    data: DataOption = None,
    template_dir: TemplateDirOption = None,
    fail_fast: FailFast = True,
) -> None:
    """Permalink, markdown, absolutize and template in one stage."""
    cfg = _get_config()
    context = _template_context(cfg, data)
    renderer = JinjaRenderer(template_dir or cfg.template_dir)
    docs = _stdin_docs(fail_fast).blog(
        permalink_template or cfg.permalink.page,
        renderer,
        context,
        site_url=cfg.site_url,
    )
    _emit(_policy(docs, fail_fast))


# ---------------------------------------------------------------------------
# Taxonomies
# ---------------------------------------------------------------------------


TaxonomyOption = Annotated[
    str | None, typer.Option("--taxonomy", help="Meta key holding terms (defaults to taxonomy.key)")
]


@app.command()
def tagindex(
    output_path: Annotated[str, typer.Argument(help="id_path of the generated index doc")],
    taxonomy: TaxonomyOption = None,
    fail_fast: FailFast = True,
) -> None:
    """Emit a single doc whose content is the JSON term index."""
    key = taxonomy or _get_config().taxonomy.key
    try:
        doc = generate_tag_index_doc(_stdin_docs(fail_fast), key, output_path)
    except ChapbookError as e:
        raise _fail(str(e)) from e
    _emit([doc])


@app.command()
def archives(
    taxonomy: TaxonomyOption = None,
    path: Annotated[
        str | None,
        typer.Option("--path", help="Output path template with {taxonomy} and {term}"),
    ] = None,
    template_ref: Annotated[
        str | None, typer.Option("--template", help="Template for archive docs")
    ] = None,
    fail_fast: FailFast = True,
) -> None:
    """Emit one archive doc per term."""
    tax = _get_config().taxonomy
    _emit(
        _stdin_docs(fail_fast).tag_archives(
            taxonomy or tax.key,
            path or tax.archive_path,
            template_ref or tax.archive_template,
        )
    )


@app.command()
def related(
    taxonomy: TaxonomyOption = None,
    fail_fast: FailFast = True,
) -> None:
    """Add meta.related: stubs of other docs sharing a term."""
    key = taxonomy or _get_config().taxonomy.key
    _emit(_stdin_docs(fail_fast).add_related(key))


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default chapbook.yaml in current directory."""
    target = Path(CONFIG_FILENAME)
    if target.exists() and not force:
        _console().print(f"[yellow]{target} already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    _console().print(f"[green]Created[/green] {target}")


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration as JSON."""
    typer.echo(_get_config().model_dump_json(indent=2))


if __name__ == "__main__":
    app()
