"""Rich output formatting helpers."""

from collections import Counter

from rich.table import Table

from modelcitizen.erector import Erector


def create_blueprint_table(title: str) -> Table:
    """Create the standard blueprint listing table.

    Args:
        title: Table title.

    Returns:
        Configured Rich Table.
    """
    table = Table(title=title)
    table.add_column("Target", style="cyan")
    table.add_column("Alias", style="magenta")
    table.add_column("Rules", justify="right")
    table.add_column("Kinds")
    table.add_column("Hooks", justify="right")
    return table


def blueprint_row(erector: Erector) -> tuple[str, str, str, str, str]:
    """Format one registered erector as a table row."""
    kinds = Counter(rule.kind for rule in erector.rules)
    return (
        erector.target.__qualname__,
        erector.alias,
        str(len(erector.rules)),
        ", ".join(f"{kind}={count}" for kind, count in sorted(kinds.items())),
        str(len(erector.callbacks())),
    )
