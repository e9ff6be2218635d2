from pathlib import Path
from typing import TYPE_CHECKING, Optional

import rich_click as click
from rich import get_console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from sqlguide._serialization import encode_json
from sqlguide.config import GuideConfig
from sqlguide.exceptions import GuideValidationError, SQLGuideError
from sqlguide.utils.logging import configure_logging

if TYPE_CHECKING:
    from click import Group

    from sqlguide.core.result import QueryResult

__all__ = ("add_guide_commands", "get_sqlguide_group", "main")


def _fail(ctx: "click.Context", message: str) -> None:
    get_console().print(f"[red]{escape(message)}[/]", highlight=False)
    ctx.exit(1)


def _result_table(result: "QueryResult", title: str) -> Table:
    table = Table(title=title, show_lines=False)
    for column in result.columns:
        table.add_column(column)
    for row in result.rows:
        table.add_row(*("NULL" if value is None else str(value) for value in row))
    return table


def get_sqlguide_group() -> "Group":
    """Get the sqlguide CLI group.

    Returns:
        The sqlguide CLI group.
    """

    @click.group(name="sqlguide")
    @click.option("--log-level", help="Logging level (DEBUG, INFO, WARNING, ERROR).", type=str, default=None)
    @click.option(
        "--log-format", help="Log format.", type=click.Choice(["simple", "structured"]), default=None
    )
    @click.option(
        "--queries-path",
        help="Directory holding lessons.sql and schema.sql.",
        type=click.Path(exists=True, file_okay=False, path_type=Path),
        default=None,
    )
    @click.option(
        "--fixtures-path",
        help="Directory holding the customer and purchase JSON fixtures.",
        type=click.Path(exists=True, file_okay=False, path_type=Path),
        default=None,
    )
    @click.pass_context
    def sqlguide_group(
        ctx: "click.Context",
        log_level: Optional[str],
        log_format: Optional[str],
        queries_path: Optional[Path],
        fixtures_path: Optional[Path],
    ) -> None:
        """Validated SQL to SQLAlchemy query guide."""
        ctx.ensure_object(dict)
        try:
            config = GuideConfig.from_env(
                log_level=log_level, log_format=log_format, queries_path=queries_path, fixtures_path=fixtures_path
            )
            configure_logging(level=config.log_level, format_style=config.log_format)
        except SQLGuideError as e:
            _fail(ctx, f"Error loading configuration: {e}")
            return
        ctx.obj["config"] = config

    return sqlguide_group


def add_guide_commands(guide_group: "Optional[Group]" = None) -> "Group":  # noqa: C901
    """Add the guide commands to a group.

    Args:
        guide_group: The group to add the commands to. A new sqlguide group by default.

    Returns:
        The group with the commands added.
    """
    console = get_console()

    if guide_group is None:
        guide_group = get_sqlguide_group()

    @guide_group.command(name="list", help="List the lessons of the guide.")
    @click.pass_context
    def list_lessons(ctx: "click.Context") -> None:  # pyright: ignore[reportUnusedFunction]
        from sqlguide.guide import Catalog

        config: GuideConfig = ctx.obj["config"]
        try:
            catalog = Catalog(config.queries_path, dialect=config.dialect)
        except SQLGuideError as e:
            _fail(ctx, str(e))
            return
        table = Table(title="Lessons")
        table.add_column("#", justify="right")
        table.add_column("Slug", no_wrap=True)
        table.add_column("Title")
        table.add_column("Ordered")
        for lesson in catalog:
            table.add_row(str(lesson.number), lesson.slug, lesson.title, "yes" if lesson.ordered else "no")
        console.print(table)

    @guide_group.command(name="show", help="Run one lesson in both forms and show the results.")
    @click.argument("lesson", type=str)
    @click.pass_context
    def show_lesson(ctx: "click.Context", lesson: str) -> None:  # pyright: ignore[reportUnusedFunction]
        from sqlguide.guide import GuideValidator, load_guide

        config: GuideConfig = ctx.obj["config"]
        try:
            catalog, dataset = load_guide(config)
            selected = catalog.get(lesson)
            with GuideValidator(config, catalog, dataset) as validator:
                outcome = validator.validate_lesson(selected)
        except SQLGuideError as e:
            _fail(ctx, str(e))
            return

        console.rule(f"[yellow]{selected.number}. {selected.title}[/]", align="left")
        console.print(Syntax(selected.sql, "sql"))
        console.print(Syntax(selected.builder_source, "python"))
        if outcome.builder_result is not None:
            console.print("[dim]SQLAlchemy emits:[/]")
            console.print(Syntax(outcome.builder_result.statement, "sql"))
        if outcome.sql_result is not None:
            console.print(_result_table(outcome.sql_result, "Result"))
        if outcome.error is not None:
            _fail(ctx, outcome.error.detail)
            return
        console.print("[green]SQL and SQLAlchemy results match the documented table.[/]")

    @guide_group.command(name="validate", help="Execute every lesson and check the documented results.")
    @click.argument("lessons", nargs=-1, type=str)
    @click.option("--json", "as_json", help="Print the report as JSON.", is_flag=True, default=False)
    @click.pass_context
    def validate_lessons(ctx: "click.Context", lessons: "tuple[str, ...]", as_json: bool) -> None:  # pyright: ignore[reportUnusedFunction]
        from sqlguide.guide import validate_guide

        config: GuideConfig = ctx.obj["config"]
        try:
            report = validate_guide(config, lessons or None)
        except SQLGuideError as e:
            _fail(ctx, str(e))
            return

        if as_json:
            click.echo(encode_json(report.to_dict()))
        else:
            table = Table(title="Validation")
            table.add_column("Lesson")
            table.add_column("Status")
            table.add_column("Detail")
            for outcome in report:
                status = "[green]ok[/]" if outcome.passed else "[red]FAILED[/]"
                detail = outcome.error.detail if outcome.error is not None else ""
                table.add_row(outcome.slug, status, escape(detail))
            console.print(table)
        if not report.passed:
            ctx.exit(1)

    @guide_group.command(name="render", help="Validate the lessons and render the guide as markdown.")
    @click.option(
        "--output",
        "-o",
        help="File to write. Defaults to standard output.",
        type=click.Path(dir_okay=False, writable=True, path_type=Path),
        default=None,
    )
    @click.option("--dialect", help="Transpile lesson SQL into this dialect.", type=str, default=None)
    @click.option(
        "--skip-validation", help="Render without executing the lessons.", is_flag=True, default=False
    )
    @click.pass_context
    def render_guide(  # pyright: ignore[reportUnusedFunction]
        ctx: "click.Context", output: Optional[Path], dialect: Optional[str], skip_validation: bool
    ) -> None:
        from sqlguide.guide import build_guide

        config: GuideConfig = ctx.obj["config"]
        try:
            document = build_guide(config.with_overrides(render_dialect=dialect), validate=not skip_validation)
        except GuideValidationError as e:
            for failure in e.failures:
                console.print(f"[red]{escape(failure.detail)}[/]", highlight=False)
            _fail(ctx, str(e))
            return
        except SQLGuideError as e:
            _fail(ctx, str(e))
            return

        if output is None:
            click.echo(document, nl=False)
        else:
            output.write_text(document, encoding="utf-8")
            console.print(f"[green]Wrote {output}[/]")

    return guide_group


def main() -> None:
    """Run the sqlguide CLI."""
    add_guide_commands()(prog_name="sqlguide")
