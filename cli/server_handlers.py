"""Server and event stream handlers for CLI"""

import asyncio
import json
from typing import Optional

from rich.console import Console

from events import StreamEventBase
from host import HostServer, HostServices


def run_server(
    services: HostServices,
    console: Console,
    bind_address: Optional[str] = None,
    port: Optional[int] = None,
    debug: bool = False,
):
    """Run the host server in the foreground until interrupted"""
    server = HostServer(debug=debug, bind_address=bind_address, port=port, services=services)
    console.print(f"[bold]SpecManager host[/bold] at http://{server.bind_address}:{server.port}")
    console.print(f"  UI bridge:      ws://{server.bind_address}:{server.port}/bridge?key={services.bridge_key}")
    console.print("  OAuth redirect: /oauth-callback")
    console.print("\n[dim]Press Ctrl+C to stop[/dim]\n")
    server.run()


async def _watch(services: HostServices, project_id: str, console: Console):
    stream = services.stream

    def print_event(event: StreamEventBase):
        console.print(f"[cyan]{event.type}[/cyan] {json.dumps(event.to_wire(), ensure_ascii=False)}")

    unsubscribe = stream.on_any(print_event)
    await stream.connect(project_id)
    if stream.current_project_id is None:
        console.print("[red]ERROR:[/red] Not authenticated. Run 'specmanager-host login' first.")
        unsubscribe()
        return False

    console.print(f"Watching events for project [bold]{project_id}[/bold] (Ctrl+C to stop)")
    try:
        # Runs until cancelled by Ctrl+C
        await asyncio.Event().wait()
    finally:
        unsubscribe()
        await stream.aclose()
    return True


def watch_events(services: HostServices, project_id: str, console: Console) -> bool:
    """Print every stream event of a project until interrupted"""
    try:
        return asyncio.run(_watch(services, project_id, console))
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped watching[/yellow]")
        return True
