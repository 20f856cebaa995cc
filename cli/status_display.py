"""Status display functionality for CLI"""

from rich.console import Console
from rich.table import Table

from host import HostServices
from cli.auth_handlers import check_session


def show_status(services: HostServices, console: Console, check: bool = False):
    """
    Display session and configuration status

    Args:
        services: Host services to inspect
        console: Rich console for output
        check: Also validate the token against the service
    """
    session = services.session
    preferences = services.preferences
    config = preferences.get_config()

    table = Table(title="SpecManager Host Status")
    table.add_column("Property", style="cyan")
    table.add_column("Value")

    table.add_row("Access Token", "Stored" if session.is_authenticated() else "None")
    table.add_row("Refresh Token", "Stored" if session.get_refresh_token() else "None")
    if check:
        valid = check_session(services)
        table.add_row("Session Valid", "[green]Yes[/green]" if valid else "[red]No[/red]")

    table.add_row("API URL", config["apiUrl"])
    table.add_row("Language", config["language"])
    table.add_row("Sounds", f"{'on' if config['soundsEnabled'] else 'off'} ({config['soundsVolume']})")
    table.add_row("Selected Project", preferences.selected_project_id or "-")
    table.add_row("Secrets File", str(services.secrets.secrets_file))
    table.add_row("State File", str(services.state_store.state_file))

    console.print(table)
