"""CLI: checkout rooms|plans|quote"""

import json
from decimal import Decimal

import click
from rich.console import Console
from rich.table import Table

console = Console()


def _get_client():
    from conference_checkout.cli.main import _get_client
    return _get_client()


def _run(coro):
    from conference_checkout.cli.main import _run
    return _run(coro)


@click.command("rooms")
@click.option("--json-output", "--json", is_flag=True)
def rooms_cmd(json_output: bool):
    """Room availability and prices."""

    async def _rooms():
        async with _get_client() as client:
            with console.status("Fetching availability..."):
                rooms = await client.inventory.get_availability()
        if json_output:
            click.echo(json.dumps([r.model_dump(mode="json") for r in rooms.values()], indent=2))
            return
        table = Table(title="Rooms")
        table.add_column("ID", style="bold")
        table.add_column("Name")
        table.add_column("Guests")
        table.add_column("Price", justify="right")
        table.add_column("Available", justify="right")
        for r in rooms.values():
            available = str(r.available) if r.selectable else "[red]sold out[/red]"
            table.add_row(r.id, r.name, str(r.guests or ""), f"{r.price:.2f}", available)
        console.print(table)

    _run(_rooms())


@click.command("plans")
@click.option("--json-output", "--json", is_flag=True)
def plans_cmd(json_output: bool):
    """Payment plans still open for selection."""
    from conference_checkout.plans import PlanCatalog

    plans = PlanCatalog().selectable()
    if json_output:
        click.echo(json.dumps([p.model_dump(mode="json") for p in plans], indent=2))
        return
    table = Table(title="Payment plans")
    table.add_column("ID", style="bold")
    table.add_column("Payments", justify="right")
    table.add_column("Schedule")
    table.add_column("")
    for p in plans:
        badge = "Most Popular" if p.popular else (p.savings or "")
        table.add_row(str(p.id), str(p.installments), p.payment_schedule, badge)
    console.print(table)


@click.command("quote")
@click.option("--room", "room_id", required=True)
@click.option("--plan", "plan_id", required=True, type=int)
@click.option("--discount", default="0", help="Discount fraction, e.g. 0.10")
def quote_cmd(room_id: str, plan_id: int, discount: str):
    """Installment breakdown for a room and plan."""

    async def _quote():
        async with _get_client() as client:
            b = await client.quote(room_id, plan_id, Decimal(discount))
        console.print(f"Room total:      {b.room_price:.2f}")
        console.print(f"Promo discount:  {b.promo_discount_total:.2f}")
        console.print(f"First payment:   [bold]{b.first_payment:.2f}[/bold]")
        if b.installments > 1:
            console.print(f"Then {b.installments - 1} x {b.installment_amount:.2f} = {b.remaining_total:.2f}")
        console.print(f"Total charged:   {b.total_charged:.2f}")

    _run(_quote())
