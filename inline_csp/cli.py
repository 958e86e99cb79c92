# inline_csp/cli.py
# Operator commands: code rollback under maintenance mode, maintenance flag, hash helper.
#
#   inline-csp rollback --code code_20240101.tgz
#   inline-csp maintenance on|off|status
#   inline-csp hash "doThing()"
#   (also available as `flask csp ...` once create_app() registers the group)

from __future__ import annotations

import click
from flask import Flask, current_app, has_app_context

from inline_csp.maintenance import MaintenanceMode, TarballCodeRollback, run_rollback
from inline_csp.security.hashing import hash_source


def _app() -> Flask:
    if has_app_context():
        return current_app._get_current_object()  # type: ignore[attr-defined]
    from inline_csp import create_app

    return create_app()


def _maintenance(app: Flask) -> MaintenanceMode:
    return MaintenanceMode(app.config["MAINTENANCE_FLAG_PATH"])


@click.group("csp")
def csp_cli() -> None:
    """inline-csp operator tools."""


@csp_cli.command("rollback")
@click.option(
    "--code",
    "-c",
    "code",
    default=None,
    help="Rollback code. Value is the backup filename without path.",
)
def rollback_cmd(code: str | None) -> None:
    """Roll back the application code base while in maintenance mode."""
    app = _app()
    rollback = TarballCodeRollback(app.config["BACKUP_DIR"], app.config["ROLLBACK_TARGET_DIR"])

    def _echo(msg: str) -> None:
        if msg.startswith("Rollback failed"):
            click.secho(f"❌ {msg}", fg="red", bold=True)
        else:
            click.secho(msg, fg="green")

    if not run_rollback(_maintenance(app), rollback, code, echo=_echo):
        raise SystemExit(1)


@csp_cli.command("maintenance")
@click.argument("state", type=click.Choice(["on", "off", "status"]))
def maintenance_cmd(state: str) -> None:
    """Toggle or report the maintenance flag."""
    mode = _maintenance(_app())
    if state != "status":
        mode.set(state == "on")
    click.echo(f"Maintenance mode is {'on' if mode.is_on() else 'off'}")


@csp_cli.command("hash")
@click.argument("content")
def hash_cmd(content: str) -> None:
    """Print the sha256 hash-source for inline CONTENT."""
    click.echo(hash_source(content))


def main() -> None:
    csp_cli(prog_name="inline-csp")


if __name__ == "__main__":
    main()
