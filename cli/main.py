"""CLI entry point and argument parsing"""

import argparse
import logging
import sys

from rich.console import Console

import settings
from host import create_services
from cli.auth_handlers import login_with_credentials, logout
from cli.server_handlers import run_server, watch_events
from cli.status_display import show_status


console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="SpecManager host CLI")
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the host server")
    serve.add_argument("--bind", "-b", default=None, help="Override bind address (default: from config)")
    serve.add_argument("--port", "-p", type=int, default=None, help=f"Override port (default: {settings.PORT})")

    login = subparsers.add_parser("login", help="Log in with email and password")
    login.add_argument("--email", default=None, help="Account email (prompted when omitted)")

    subparsers.add_parser("logout", help="Remove stored tokens")

    status = subparsers.add_parser("status", help="Show session and configuration status")
    status.add_argument("--check", action="store_true", help="Validate the token against the service")

    watch = subparsers.add_parser("watch", help="Print realtime events for a project")
    watch.add_argument("project_id", help="Project to watch")

    return parser


def main(argv=None):
    """Entry point for the CLI"""
    args = build_parser().parse_args(argv)

    if args.debug and args.command != "serve":
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    ok = True
    try:
        services = create_services()

        if args.command == "serve":
            run_server(services, console, bind_address=args.bind, port=args.port, debug=args.debug)
        elif args.command == "login":
            ok = login_with_credentials(services, console, email=args.email)
        elif args.command == "logout":
            logout(services, console)
        elif args.command == "status":
            show_status(services, console, check=args.check)
        elif args.command == "watch":
            ok = watch_events(services, args.project_id, console)

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        console.print("Goodbye!")
    except Exception as e:
        console.print(f"\n[red]Fatal error:[/red] {e}")
        if args.debug:
            import traceback
            traceback.print_exc()
        ok = False

    if not ok:
        sys.exit(1)


if __name__ == "__main__":
    main()
