"""CLI: checkout pay|status|progress|next-due"""

import json
from decimal import Decimal
from typing import Optional

import click
from rich.console import Console

from conference_checkout.models.payment import OrderStatus

console = Console()

STATUS_STYLE = {
    OrderStatus.SUCCESS: "green",
    OrderStatus.FAILED: "red",
    OrderStatus.PENDING: "yellow",
    OrderStatus.NOT_FOUND: "yellow",
}


def _get_client():
    from conference_checkout.cli.main import _get_client
    return _get_client()


def _get_identity():
    from conference_checkout.cli.main import _get_identity
    return _get_identity()


def _run(coro):
    from conference_checkout.cli.main import _run
    return _run(coro)


@click.command("pay")
@click.option("--room", "room_id", required=True)
@click.option("--plan", "plan_id", type=int, default=None, help="Plan for a new purchase")
@click.option("--promo", "promo_code", default=None)
@click.option("--next", "next_installment", is_flag=True, help="Pay the next installment of your plan")
@click.option("--locked-discount", default=None, help="Discount fraction locked in at first purchase")
def pay_cmd(room_id: str, plan_id: Optional[int], promo_code: Optional[str], next_installment: bool,
            locked_discount: Optional[str]):
    """Submit a payment and print the hosted payment form URL."""
    identity = _get_identity()

    async def _pay():
        async with _get_client() as client:
            flow = client.flow(identity)
            try:
                payment_number = 1
                pid = plan_id
                if next_installment:
                    sub = await client.reconciler.subscription(identity.email)
                    if sub is None:
                        console.print("[yellow]No paid plan yet. Use --plan to start one.[/yellow]")
                        return
                    if sub.progress.is_complete:
                        console.print("[green]Plan already paid in full.[/green]")
                        return
                    pid = int(sub.plan_id)
                    payment_number = sub.progress.next_payment_number
                if pid is None:
                    raise click.UsageError("--plan is required unless --next is given")

                if payment_number == 1:
                    await flow.select_room(room_id)
                    flow.select_plan(pid)
                else:
                    await flow.resume(pid, room_id)
                if promo_code and payment_number == 1:
                    with console.status("Reserving promo code..."):
                        applied = await flow.apply_promo(promo_code)
                    if not applied:
                        console.print(f"[red]Promo not applied:[/red] {flow.promo_error}")
                        return
                    console.print(f"[green]Promo {flow.promo_code} reserved until "
                                  f"{flow.reservation.expires_at.isoformat()}[/green]")
                with console.status("Submitting payment..."):
                    result = await flow.purchase(
                        payment_number=payment_number,
                        locked_discount=Decimal(locked_discount) if locked_discount else None,
                    )
            finally:
                flow.close()
        intent = result.intent
        console.print(f"Order {intent.order_number}: {intent.amount / 100:.2f} "
                      f"(payment {intent.payment_number} of {intent.installments})")
        console.print(f"[green]Continue to payment:[/green] {result.redirect_url}")

    _run(_pay())


@click.command("status")
@click.argument("order_id")
@click.option("--json-output", "--json", is_flag=True)
def status_cmd(order_id: str, json_output: bool):
    """Resolve an order's outcome (order id or full return URL)."""

    async def _status():
        async with _get_client() as client:
            if order_id.startswith("http"):
                outcome = await client.reconciler.resolve_return_url(order_id)
            else:
                outcome = await client.reconciler.resolve_order(order_id)
        if json_output:
            click.echo(json.dumps(outcome.model_dump(mode="json"), indent=2))
            return
        style = STATUS_STYLE[outcome.status]
        suffix = f" ({outcome.order_id})" if outcome.order_id else ""
        console.print(f"[{style}]{outcome.message}[/{style}]{suffix}")

    _run(_status())


@click.command("progress")
@click.argument("email", required=False)
def progress_cmd(email: Optional[str]):
    """Completed vs. required installments."""

    async def _progress():
        async with _get_client() as client:
            p = await client.reconciler.plan_progress(email or _get_identity().email)
        if p.total == 0:
            console.print("[yellow]No successful payments yet.[/yellow]")
        else:
            console.print(f"{p.completed} of {p.total} payments completed")

    _run(_progress())


@click.command("next-due")
@click.argument("user_id", required=False)
def next_due_cmd(user_id: Optional[str]):
    """Next installment due date."""

    async def _next_due():
        async with _get_client() as client:
            due = await client.reconciler.next_due(user_id or _get_identity().id)
        if due is None or due.next_due_date is None:
            console.print("[green]Nothing due.[/green]")
            return
        console.print(f"Installment {due.installment_number} of {due.total_installments} "
                      f"due {due.next_due_date.date().isoformat()} ({due.remaining} remaining)")

    _run(_next_due())
