"""CLI commands for bt-study-engine."""

import typer

from bt_study_engine.cli.search import replay_command, scope_command, search_command

main_app = typer.Typer(
    name="bt-study",
    help="BT Study Engine CLI",
    no_args_is_help=True,
)
main_app.command("search")(search_command)
main_app.command("replay")(replay_command)
main_app.command("scope")(scope_command)


def main() -> None:
    """Entry point for the CLI."""
    main_app()


__all__ = ["main", "main_app"]
