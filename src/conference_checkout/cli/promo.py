"""CLI: checkout promo check"""

import click
from rich.console import Console

console = Console()


def _get_client():
    from conference_checkout.cli.main import _get_client
    return _get_client()


def _run(coro):
    from conference_checkout.cli.main import _run
    return _run(coro)


@click.group()
def promo():
    """Promo code commands."""


@promo.command("check")
@click.argument("code")
@click.option("--room", "room_id", required=True)
def promo_check(code: str, room_id: str):
    """Validate a promo code for a room without reserving it."""

    async def _check():
        async with _get_client() as client:
            p = await client.promos.validate(code, room_id)
        console.print(f"[green]{p.code}[/green]: {p.discount * 100:.0f}% off")

    _run(_check())
