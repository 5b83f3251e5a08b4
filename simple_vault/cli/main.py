"""CLI entrypoint for simple-vault."""
import sys
import asyncio
import argparse
import logging
from pathlib import Path

from .validators import parse_key_value, validate_secret_name

VERSION = "0.1.0"

# Configure logging to stderr
logging.basicConfig(
    level=logging.WARNING,
    format="%(message)s",
    stream=sys.stderr
)
logger = logging.getLogger(__name__)


def _session(confirm=None):
    from simple_vault.secrets.workflows.session import VaultSession

    return VaultSession(confirm=confirm)


def _fail(session):
    """Report the session's error slot and exit with a runtime error."""
    print(f"Error: {session.error or 'Request failed'}", file=sys.stderr)
    sys.exit(1)


def _prompt_delete(secret_id):
    try:
        answer = input(f"Are you sure you want to delete secret {secret_id}? (y/N): ")
    except EOFError:
        return False
    return answer.strip().lower() == 'y'


def cmd_version(args):
    """Show version information."""
    print(f"simple-vault {VERSION}")


def cmd_health(args):
    """Check that the vault server and its database are reachable."""
    from simple_vault.secrets.domains.api_client import VaultAPIClient
    from simple_vault.secrets.domains.errors import VaultError

    api = VaultAPIClient()
    try:
        result = asyncio.run(api.health())
    except VaultError as e:
        print(f"Error: Vault at {api.base_url} is unhealthy: {e}", file=sys.stderr)
        sys.exit(1)
    print(f"Vault at {api.base_url}: {result.get('status', 'unknown')}")


def cmd_config_set_path(args):
    """Set config file path preference."""
    from simple_vault.secrets.domains.preferences import set_preference

    config_path = Path(args.path).resolve()

    if not config_path.exists():
        print(f"Error: Config file does not exist: {config_path}", file=sys.stderr)
        sys.exit(1)

    if not config_path.is_file():
        print(f"Error: Path is not a file: {config_path}", file=sys.stderr)
        sys.exit(1)

    set_preference("config_path", str(config_path))
    print(f"Config path set to: {config_path}")


def cmd_config_show(args):
    """Show the config file in use and the resolved API endpoint."""
    from simple_vault.secrets.domains.api_client import resolve_settings
    from simple_vault.secrets.domains.config_loader import ConfigError, default_config_path
    from simple_vault.secrets.domains.preferences import get_preference

    config_path_pref = get_preference("config_path")

    if config_path_pref and Path(config_path_pref).exists():
        print(f"Config path: {config_path_pref}")
        print("Source: preference")
    elif config_path_pref:
        print(f"Config path (from preference, but file not found): {config_path_pref}")
        print("Source: preference")
    else:
        default_config = default_config_path()
        print(f"Config path: {default_config}")
        print("Source: default" if default_config.exists() else "Source: default (file not found)")

    try:
        settings = resolve_settings()
    except ConfigError as e:
        print(f"API URL: unavailable (invalid config: {e})")
    else:
        print(f"API URL: {settings.base_url}")


def cmd_config_clear(args):
    """Clear config path preference."""
    from simple_vault.secrets.domains.config_loader import default_config_path
    from simple_vault.secrets.domains.preferences import clear_preference

    clear_preference("config_path")
    print(f"Config path preference cleared. Will use default: {default_config_path()}")


def cmd_secrets_list(args):
    """List secrets with their key names."""
    from .render import format_secret_summary

    session = _session()
    if not asyncio.run(session.store.load()):
        _fail(session)

    secrets = session.store.secrets
    if not secrets:
        print("No secrets found. Create your first secret with 'vault secrets create'.")
        return
    for secret in secrets:
        for line in format_secret_summary(secret):
            print(line)


def cmd_secrets_get(args):
    """Show one secret, values masked unless --reveal is given."""
    from simple_vault.secrets.domains.errors import VaultError
    from .render import format_secret_detail

    session = _session()
    try:
        secret = asyncio.run(session.api.get_secret(args.secret_id))
    except VaultError as e:
        logger.debug(f"Fetch of {args.secret_id} failed: {e}")
        print(f"Error: Failed to fetch secret '{args.secret_id}'", file=sys.stderr)
        sys.exit(1)

    for line in format_secret_detail(secret, reveal=args.reveal):
        print(line)


def cmd_secrets_create(args):
    """Create a secret through the create dialog workflow."""
    validate_secret_name(args.name)
    pairs = [parse_key_value(pair) for pair in args.data or []]

    session = _session()
    session.modal.open_create()
    session.modal.set_name(args.name)
    session.modal.set_description(args.description or "")
    for key, value in pairs:
        session.editor.add(key, value)

    if not asyncio.run(session.coordinator.create()):
        _fail(session)

    print(f"Created secret '{args.name}' with {len(dict(pairs))} key(s)")
    if session.error:
        print(f"Warning: {session.error}", file=sys.stderr)


def cmd_secrets_update(args):
    """Edit a secret through the edit dialog workflow."""
    sets = [parse_key_value(pair) for pair in args.set or []]
    if args.name is not None:
        validate_secret_name(args.name)

    session = _session()
    if not asyncio.run(session.store.load()):
        _fail(session)

    secret = session.store.get(args.secret_id)
    if secret is None:
        print(f"Error: Secret '{args.secret_id}' not found", file=sys.stderr)
        sys.exit(1)

    session.modal.open_edit(secret)
    if args.name is not None:
        session.modal.set_name(args.name)
    if args.description is not None:
        session.modal.set_description(args.description)
    for key, value in sets:
        session.editor.add(key, value)
    for key in args.unset or []:
        if not session.editor.remove(key):
            print(f"Warning: Key '{key}' not present in secret", file=sys.stderr)

    name = session.modal.form.name
    if not asyncio.run(session.coordinator.update()):
        _fail(session)

    print(f"Updated secret '{name}'")
    if session.error:
        print(f"Warning: {session.error}", file=sys.stderr)


def cmd_secrets_delete(args):
    """Delete a secret after confirmation."""
    confirm = (lambda secret_id: True) if args.yes else _prompt_delete
    session = _session(confirm=confirm)

    if not asyncio.run(session.coordinator.remove(args.secret_id)):
        if session.error:
            _fail(session)
        print("Delete cancelled.")
        return

    print(f"Deleted secret '{args.secret_id}'")
    if session.error:
        print(f"Warning: {session.error}", file=sys.stderr)


def cmd_secrets_access(args):
    """Fetch a secret by name with an access key pair and print KEY=VALUE lines."""
    from simple_vault.secrets.domains.api_client import VaultAPIClient
    from simple_vault.secrets.domains.errors import VaultError

    validate_secret_name(args.name)
    api = VaultAPIClient()
    try:
        result = asyncio.run(api.access_secret(args.access_key, args.secret_key, args.name))
    except VaultError as e:
        logger.debug(f"Access request for {args.name} failed: {e}")
        print(f"Error: Failed to access secret '{args.name}'", file=sys.stderr)
        sys.exit(1)

    for key, value in (result.get("data") or {}).items():
        print(f"{key}={value}")


def cmd_shell(args):
    """Start the interactive session."""
    from .shell import run_shell

    run_shell()


def build_parser():
    parser = argparse.ArgumentParser(
        prog="vault",
        description="Simple Vault CLI - manage secrets stored in a Simple Vault server",
        epilog="""
Exit codes:
  0 - Success
  1 - Runtime error (network, server rejected request, secret not found, etc.)
  2 - Usage error (invalid arguments, malformed KEY=VALUE pairs, etc.)

Environment variables:
  VAULT_API_URL   - Vault API base URL (overrides config file)
  VAULT_API_TOKEN - Bearer token sent with every request (overrides config file)

Configuration:
  Default location: ~/.config/simple-vault/config.yml
  Custom path: Set with 'vault config set-path <path>'
  View current: Run 'vault config show'
        """
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log requests and state changes to stderr"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser(
        "version",
        help="Show version information",
        description="Display the current version of simple-vault"
    )

    subparsers.add_parser(
        "health",
        help="Check vault server health",
        description="Query the server's /health endpoint"
    )

    subparsers.add_parser(
        "shell",
        help="Interactive session",
        description="""
Interactive session with create/edit dialogs, a key/value editor and
confirmation before deletes. Type 'help' inside the shell for commands.
        """
    )

    # config command
    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
        description="Manage simple-vault configuration"
    )
    config_subparsers = config_parser.add_subparsers(dest="config_command")

    config_set_path_parser = config_subparsers.add_parser(
        "set-path",
        help="Set config file path",
        description="""
Set the configuration file path preference.

This stores the absolute path to your config file in:
~/.config/simple-vault/preferences.json
        """
    )
    config_set_path_parser.add_argument("path", help="Path to config file")

    config_subparsers.add_parser(
        "show",
        help="Show current config path",
        description="Display the current configuration file path and its source"
    )

    config_subparsers.add_parser(
        "clear",
        help="Clear config path preference",
        description="Remove the config path preference and fall back to the default location"
    )

    # secrets command
    secrets_parser = subparsers.add_parser(
        "secrets",
        help="Secret management operations",
        description="List, create, edit and delete secrets"
    )
    secrets_subparsers = secrets_parser.add_subparsers(dest="secrets_command")

    secrets_subparsers.add_parser(
        "list",
        help="List secrets",
        description="List every secret with its key names (values are never shown)"
    )

    get_parser = secrets_subparsers.add_parser(
        "get",
        help="Show a secret",
        description="Show one secret. Values are masked unless --reveal is given."
    )
    get_parser.add_argument("secret_id", help="Secret ID")
    get_parser.add_argument(
        "--reveal",
        action="store_true",
        help="Print secret values in clear text"
    )

    create_parser = secrets_subparsers.add_parser(
        "create",
        help="Create a secret",
        description="Create a secret from optional KEY=VALUE pairs"
    )
    create_parser.add_argument("--name", required=True, help="Secret name")
    create_parser.add_argument("--description", help="Optional description")
    create_parser.add_argument(
        "--data",
        action="append",
        metavar="KEY=VALUE",
        help="Key/value pair (repeatable; a repeated key keeps the last value)"
    )

    update_parser = secrets_subparsers.add_parser(
        "update",
        help="Edit a secret",
        description="""
Edit an existing secret. The secret is loaded, the changes are applied to a
draft copy, and the full draft is sent back to the vault.
        """
    )
    update_parser.add_argument("secret_id", help="Secret ID")
    update_parser.add_argument("--name", help="New name")
    update_parser.add_argument("--description", help="New description")
    update_parser.add_argument(
        "--set",
        action="append",
        metavar="KEY=VALUE",
        help="Add or overwrite a key (repeatable)"
    )
    update_parser.add_argument(
        "--unset",
        action="append",
        metavar="KEY",
        help="Remove a key (repeatable)"
    )

    delete_parser = secrets_subparsers.add_parser(
        "delete",
        help="Delete a secret",
        description="Delete a secret. Asks for confirmation unless --yes is given."
    )
    delete_parser.add_argument("secret_id", help="Secret ID")
    delete_parser.add_argument(
        "-y", "--yes",
        action="store_true",
        help="Do not ask for confirmation"
    )

    access_parser = secrets_subparsers.add_parser(
        "access",
        help="Fetch a secret with an access key pair",
        description="""
Fetch a secret by name using an access key and secret key instead of a
session token. Prints the secret's data as KEY=VALUE lines.
        """
    )
    access_parser.add_argument("name", help="Secret name")
    access_parser.add_argument("--access-key", required=True, help="Access key")
    access_parser.add_argument("--secret-key", required=True, help="Secret key")

    return parser, config_parser, secrets_parser


def main(argv=None):
    """Main CLI entrypoint.

    Exit codes:
        0 - Success
        1 - Runtime errors (network, server rejection, secret not found, etc.)
        2 - Usage errors (invalid arguments, malformed input, etc.)
    """
    parser, config_parser, secrets_parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if not args.command:
        parser.print_help()
        sys.exit(2)

    secrets_commands = {
        "list": cmd_secrets_list,
        "get": cmd_secrets_get,
        "create": cmd_secrets_create,
        "update": cmd_secrets_update,
        "delete": cmd_secrets_delete,
        "access": cmd_secrets_access,
    }
    config_commands = {
        "set-path": cmd_config_set_path,
        "show": cmd_config_show,
        "clear": cmd_config_clear,
    }

    try:
        if args.command == "version":
            cmd_version(args)
        elif args.command == "health":
            cmd_health(args)
        elif args.command == "shell":
            cmd_shell(args)
        elif args.command == "config":
            handler = config_commands.get(args.config_command)
            if handler is None:
                config_parser.print_help()
                sys.exit(2)
            handler(args)
        elif args.command == "secrets":
            handler = secrets_commands.get(args.secrets_command)
            if handler is None:
                secrets_parser.print_help()
                sys.exit(2)
            handler(args)
        else:
            parser.print_help()
            sys.exit(2)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
