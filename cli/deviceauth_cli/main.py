"""Main entry point for the device auth CLI."""
from __future__ import annotations

import sys

from deviceauth_cli import __version__
from deviceauth_cli.auth import list_sessions, login, logout, revoke_session, status
from deviceauth_cli.config import Config

COMMANDS = ("login", "logout", "status", "sessions", "revoke-session")


def print_help():
    """Print help message."""
    print(f"""
deviceauth CLI v{__version__}

Usage:
  deviceauth [options] <command>

Commands:
  login                   Authenticate via browser
  logout [--all]          Revoke token and clear credentials
  status                  Check the stored token against the server
  sessions                List active CLI sessions
  revoke-session <id>     Revoke one CLI session (id as shown by `sessions`)
  revoke-session --all    Revoke every CLI session (requires login again)

Options:
  --api-url URL     Override server URL (default: http://localhost:8000)
  -h, --help        Show this help
  -v, --version     Show version

Environment:
  DEVICEAUTH_API_URL  Override server URL (same as --api-url)
""")


def parse_args(args: list[str]) -> dict:
    """
    Parse command line arguments.

    Returns dict with:
        command: str | None
        session_id: str | None (revoke-session only)
        api_url: str | None
        all: bool
        show_help: bool
        show_version: bool
    """
    result = {
        "command": None,
        "session_id": None,
        "api_url": None,
        "all": False,
        "show_help": False,
        "show_version": False,
    }

    i = 0
    while i < len(args):
        arg = args[i]

        if arg in COMMANDS and result["command"] is None:
            result["command"] = arg
        elif arg == "--api-url":
            if i + 1 < len(args):
                result["api_url"] = args[i + 1]
                i += 1
            else:
                print("Error: --api-url requires a URL")
                sys.exit(1)
        elif arg == "--all":
            result["all"] = True
        elif arg in ("--help", "-h"):
            result["show_help"] = True
        elif arg in ("--version", "-v"):
            result["show_version"] = True
        elif arg.startswith("-"):
            print(f"Unknown option: {arg}")
            print("Run 'deviceauth --help' for usage.")
            sys.exit(1)
        elif result["command"] == "revoke-session" and result["session_id"] is None:
            result["session_id"] = arg
        else:
            print(f"Unknown command: {arg}")
            print("Run 'deviceauth --help' for usage.")
            sys.exit(1)

        i += 1

    return result


def main():
    """Main entry point."""
    args = parse_args(sys.argv[1:])

    if args["show_help"]:
        print_help()
        return

    if args["show_version"]:
        print(f"deviceauth-cli {__version__}")
        return

    if args["command"] is None:
        print_help()
        sys.exit(1)

    config = Config(api_url_override=args["api_url"])
    command = args["command"]

    if command == "login":
        success = login(config)
    elif command == "logout":
        success = logout(config, logout_all=args["all"])
    elif command == "status":
        success = status(config)
    elif command == "sessions":
        success = list_sessions(config)
    else:
        success = revoke_session(config, session_id=args["session_id"], revoke_all=args["all"])

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
