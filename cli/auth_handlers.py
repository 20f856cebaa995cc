"""Authentication handlers for CLI"""

import asyncio
from typing import Optional

from rich.console import Console
from rich.prompt import Prompt

from errors import SpecManagerError
from host import HostServices


def login_with_credentials(
    services: HostServices,
    console: Console,
    email: Optional[str] = None,
    password: Optional[str] = None,
) -> bool:
    """
    Prompt for credentials (when not given) and log in

    Args:
        services: Host services (session and preferences are used)
        console: Rich console for output
        email: Account email, prompted for when None
        password: Account password, prompted for when None

    Returns:
        True if the session was stored
    """
    email = email or Prompt.ask("Email", console=console)
    password = password or Prompt.ask("Password", password=True, console=console)
    api_url = services.preferences.api_url

    console.print(f"[dim]Logging in to {api_url}...[/dim]")
    try:
        result = asyncio.run(services.session.login_with_credentials(api_url, email, password))
    except SpecManagerError as e:
        console.print(f"[red]Login failed:[/red] {e.message}")
        return False

    user = result.get("user") or {}
    name = user.get("name") or user.get("email") or email
    console.print(f"[green]✓ Logged in as {name}[/green]")
    return True


def logout(services: HostServices, console: Console):
    """Remove stored tokens and the selected project"""
    services.session.logout()
    services.preferences.selected_project_id = None
    console.print("[green]✓ Successfully logged out[/green]")


def check_session(services: HostServices) -> bool:
    """Validate the stored session against the service (refreshes once on 401)"""
    if not services.session.is_authenticated():
        return False
    return asyncio.run(services.session.validate(services.preferences.api_url))
