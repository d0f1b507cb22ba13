"""CLI subcommands.

Each module exposes a ``register_*_commands`` function that attaches its
commands to a Typer app, taking factories for the manager and config so
that tests can inject mocks.
"""

from issuance_verifier.cli.commands.run import register_run_commands
from issuance_verifier.cli.commands.status import register_status_commands
from issuance_verifier.cli.commands.validate import register_validate_commands
from issuance_verifier.cli.commands.wait import register_wait_commands

__all__ = [
    "register_run_commands",
    "register_status_commands",
    "register_validate_commands",
    "register_wait_commands",
]
