"""
Conference checkout CLI — `checkout` command.

Commands:
  checkout session login|show|logout   Store the attendee identity
  checkout rooms                       Room availability and prices
  checkout plans                       Payment plans
  checkout quote                       Installment breakdown for a room + plan
  checkout promo check CODE            Validate a promo code
  checkout pay                         Reserve promo (optional) and submit payment
  checkout status ORDER_ID             Resolve an order's outcome
  checkout progress [EMAIL]            Completed / total installments
  checkout next-due [USER_ID]          Next installment due
"""

import asyncio
import logging

try:
    import click
    from rich.console import Console
    from rich.logging import RichHandler
except ImportError:
    raise SystemExit("CLI requires extras: pip install conference-checkout[cli]")

from conference_checkout.client import AsyncCheckout
from conference_checkout.config import load_config, load_settings, save_config
from conference_checkout.errors import CheckoutError
from conference_checkout.models.session import SessionIdentity

console = Console()


def _load_config() -> dict:
    return load_config()


def _save_config(cfg: dict) -> None:
    save_config(cfg)


def _get_client() -> AsyncCheckout:
    cfg = _load_config()
    return AsyncCheckout(settings=load_settings(), access_token=cfg.get("access_token"))


def _get_identity() -> SessionIdentity:
    session = _load_config().get("session")
    if not session or not session.get("email"):
        console.print("[red]No session. Run `checkout session login` first.[/red]")
        raise SystemExit(1)
    return SessionIdentity.model_validate(session)


def _run(coro):
    try:
        return asyncio.run(coro)
    except CheckoutError as e:
        console.print(f"[red]{e.code}:[/red] {e}")
        raise SystemExit(1)


@click.group()
@click.version_option("0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
def main(verbose: bool):
    """Conference checkout CLI — rooms, promo codes, installment plans and payments."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(message)s", handlers=[RichHandler(console=console)],
        )


# Register subcommands from separate modules
from conference_checkout.cli.session import session
from conference_checkout.cli.catalog import rooms_cmd, plans_cmd, quote_cmd
from conference_checkout.cli.promo import promo
from conference_checkout.cli.payments import pay_cmd, status_cmd, progress_cmd, next_due_cmd

main.add_command(session)
main.add_command(rooms_cmd)
main.add_command(plans_cmd)
main.add_command(quote_cmd)
main.add_command(promo)
main.add_command(pay_cmd)
main.add_command(status_cmd)
main.add_command(progress_cmd)
main.add_command(next_due_cmd)


if __name__ == "__main__":
    main()
