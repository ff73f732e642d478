"""CLI entrypoint for the TDD trainer."""

import logging
from pathlib import Path
from typing import Optional, Sequence

import click
from dotenv import load_dotenv

from tdd_trainer.catalog import CatalogError, CatalogSelector, by_name, load_catalog, validate_catalog_file
from tdd_trainer.config import ConfigError, debug_enabled, load_config
from tdd_trainer.exercise import Exercise

# Load .env file on CLI startup
load_dotenv()


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load_exercises(catalog: Optional[str]) -> list[Exercise]:
    """Load the catalog or exit with an error message."""
    try:
        if catalog:
            return load_catalog(Path(catalog))
        config = load_config(require_catalog=True)
        return load_catalog(config.catalog_path)
    except (ConfigError, CatalogError, FileNotFoundError) as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)


def prompt_for_exercise(exercises: Sequence[Exercise]) -> Optional[Exercise]:
    """Interactive chooser: numbered list, blank or 'b' cancels."""
    click.echo("\n=== Exercises ===")
    for idx, exercise in enumerate(exercises, start=1):
        marker = " (babysteps)" if exercise.baby_steps_activated else ""
        click.echo(f"{idx}) {exercise.name}{marker}")
    click.echo("b) Back")

    while True:
        choice = click.prompt("Select exercise", default="b", show_default=False).strip().lower()
        if choice in ("", "b"):
            return None
        if choice.isdigit() and 1 <= int(choice) <= len(exercises):
            return exercises[int(choice) - 1]
        click.echo("Invalid selection.")


@click.group()
@click.version_option(package_name="tdd-trainer")
def cli():
    """TDD trainer - practice Red-Green-Refactor with babysteps."""
    _configure_logging(debug_enabled())


@cli.command("list")
@click.option("--catalog", type=click.Path(), default=None, help="Catalog YAML (default: TDDT_CATALOG or bundled)")
def list_exercises(catalog: Optional[str]):
    """List the exercises in the catalog."""
    exercises = _load_exercises(catalog)

    click.echo(f"{'NAME':<24} {'BABYSTEPS':<10} {'TEST':>6} {'CODE':>6}")
    click.echo("-" * 50)
    for exercise in exercises:
        babysteps = "on" if exercise.baby_steps_activated else "off"
        click.echo(
            f"{exercise.name:<24} {babysteps:<10} "
            f"{exercise.baby_steps_test_time:>5}s {exercise.baby_steps_code_time:>5}s"
        )
    click.echo()
    click.echo(f"Showing {len(exercises)} exercise(s)")


@cli.command("validate-catalog")
@click.argument("catalog", type=click.Path())
def validate_catalog(catalog: str):
    """Validate a catalog file against the exercise schema."""
    try:
        is_valid, message = validate_catalog_file(Path(catalog))
    except FileNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    if is_valid:
        click.echo(f"✓ {Path(catalog).name} is valid: {message}")
    else:
        click.echo(f"✗ {Path(catalog).name} validation failed: {message}", err=True)
        raise SystemExit(1)


@cli.command("check-config")
def check_config():
    """Show the effective configuration."""
    try:
        config = load_config(require_catalog=True)
    except ConfigError as e:
        click.echo(f"Configuration error:\n{e}", err=True)
        raise SystemExit(1)

    click.echo("Configuration loaded successfully!")
    click.echo(f"  TDDT_CATALOG: {config.catalog_path}")
    click.echo(f"  TDDT_WORKSPACE: {config.workspace_dir}")
    click.echo(f"  TDDT_REPORTS_DIR: {config.reports_dir}")
    click.echo(f"  TDDT_EXECUTION_TIMEOUT_S: {config.execution_timeout_s:g}")
    click.echo(f"  TDDT_DEBUG: {'on' if config.debug else 'off'}")


@cli.command()
@click.option("--catalog", type=click.Path(), default=None, help="Catalog YAML (default: TDDT_CATALOG or bundled)")
@click.option("--exercise", "exercise_name", default=None, help="Start with this exercise instead of asking")
@click.option("--workspace", type=click.Path(), default=None, help="Directory to write the kata files to")
@click.option("--no-graph", is_flag=True, help="Run checks without the LangGraph wrapper")
def practice(catalog: Optional[str], exercise_name: Optional[str], workspace: Optional[str], no_graph: bool):
    """Start an interactive Red-Green-Refactor session."""
    from tdd_trainer.babysteps import BabystepTimer
    from tdd_trainer.engine import PhaseEngine
    from tdd_trainer.events import EventBus
    from tdd_trainer.session import PracticeSession, Workspace
    from tdd_trainer.step_runner import PytestExecutor
    from tdd_trainer.tracking import TrackingManager

    try:
        config = load_config(require_catalog=catalog is None)
    except ConfigError as e:
        click.echo(f"Configuration error:\n{e}", err=True)
        raise SystemExit(1)

    exercises = _load_exercises(catalog or str(config.catalog_path))

    first_choice = by_name(exercise_name) if exercise_name else None

    def chooser(options: Sequence[Exercise]) -> Optional[Exercise]:
        nonlocal first_choice
        if first_choice is not None:
            chosen, first_choice = first_choice(options), None
            if chosen is not None:
                return chosen
            click.echo(f"No exercise named {exercise_name!r}.", err=True)
        return prompt_for_exercise(options)

    tracker = TrackingManager()
    engine = PhaseEngine(
        executor=PytestExecutor(timeout_s=config.execution_timeout_s, use_graph=not no_graph),
        tracker=tracker,
        selector=CatalogSelector(exercises, chooser),
        bus=EventBus(),
        timer=BabystepTimer(),
    )
    session = PracticeSession(engine, Workspace(Path(workspace) if workspace else config.workspace_dir))

    exit_code = session.run(lambda text: click.prompt(text, default="", show_default=False))

    if tracker.entries:
        report_path = tracker.write_report(config.reports_dir)
        click.echo(f"Session report: {report_path}")
    raise SystemExit(exit_code)


@cli.command()
@click.argument("exercise")
@click.option("--reports-dir", type=click.Path(), default=None, help="Where session reports are stored")
def summary(exercise: str, reports_dir: Optional[str]):
    """Summarise saved practice sessions for an exercise."""
    from tdd_trainer.observe import print_summary

    if reports_dir is None:
        try:
            reports_dir = str(load_config(require_catalog=False).reports_dir)
        except ConfigError as e:
            click.echo(f"Configuration error:\n{e}", err=True)
            raise SystemExit(1)
    print_summary(exercise, Path(reports_dir), print_fn=click.echo)


if __name__ == "__main__":
    cli()
