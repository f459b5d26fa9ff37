"""CLI: checkout session login|show|logout"""

from typing import Optional

import click
from rich.console import Console

console = Console()


def _load_config() -> dict:
    from conference_checkout.cli.main import _load_config
    return _load_config()


def _save_config(cfg: dict) -> None:
    from conference_checkout.cli.main import _save_config
    _save_config(cfg)


@click.group()
def session():
    """Attendee session identity."""


@session.command("login")
@click.option("--user-id", default=None, help="Registration backend user id")
@click.option("--email", default=None)
@click.option("--first-name", default=None)
@click.option("--last-name", default="")
def session_login(user_id: Optional[str], email: Optional[str], first_name: Optional[str], last_name: str):
    """Save the identity your login session yields."""
    user_id = user_id or click.prompt("User id")
    email = email or click.prompt("Email")
    first_name = first_name or click.prompt("First name")
    cfg = _load_config()
    _save_config({**cfg, "session": {
        "id": user_id, "email": email, "firstName": first_name, "lastName": last_name,
    }})
    console.print(f"[green]Session saved for {email} (ID: {user_id})[/green]")


@session.command("show")
def session_show():
    """Show the saved identity."""
    s = _load_config().get("session")
    if s:
        name = f"{s.get('firstName', '')} {s.get('lastName', '')}".strip()
        console.print(f"[green]{name}[/green] <{s.get('email')}> (ID: {s.get('id')})")
    else:
        console.print("[yellow]No session. Run `checkout session login`.[/yellow]")


@session.command("logout")
def session_logout():
    """Forget the saved identity."""
    cfg = _load_config()
    cfg.pop("session", None)
    _save_config(cfg)
    console.print("[green]Session cleared.[/green]")
