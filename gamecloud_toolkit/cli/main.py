"""CLI entrypoint for gamecloud-toolkit."""
import sys
import argparse
import asyncio
import logging
import shutil
from pathlib import Path

from gamecloud_toolkit import __version__
from .validators import validate_blob_name, validate_reference, validate_secret_name

# Configure logging to stderr
logging.basicConfig(
    level=logging.WARNING,
    format="%(message)s",
    stream=sys.stderr
)
logger = logging.getLogger(__name__)


def cmd_version(args):
    """Show version information."""
    print(f"gamecloud-toolkit {__version__}")


def cmd_config_set_path(args):
    """Set config file path preference."""
    from gamecloud_toolkit.secrets.domains.preferences import CONFIG_PATH_KEY, set_preference

    config_path = Path(args.path).resolve()

    if not config_path.exists():
        print(f"Error: Config file does not exist: {config_path}", file=sys.stderr)
        sys.exit(1)

    if not config_path.is_file():
        print(f"Error: Path is not a file: {config_path}", file=sys.stderr)
        sys.exit(1)

    set_preference(CONFIG_PATH_KEY, str(config_path))
    print(f"Config path set to: {config_path}")


def cmd_config_show(args):
    """Show current config file path and where it came from."""
    from gamecloud_toolkit.secrets.domains.preferences import CONFIG_PATH_KEY, default_config_path, get_preference

    config_path_pref = get_preference(CONFIG_PATH_KEY)

    if config_path_pref:
        config_path = Path(config_path_pref)
        if config_path.exists():
            print(f"Config path: {config_path}")
        else:
            print(f"Config path (from preference, but file not found): {config_path}")
        print("Source: preference")
        return

    default_config = default_config_path()
    print(f"Config path: {default_config}")
    if default_config.exists():
        print("Source: default")
    else:
        print("Source: default (file not found)")


def cmd_config_clear(args):
    """Clear config path preference."""
    from gamecloud_toolkit.secrets.domains.preferences import CONFIG_PATH_KEY, clear_preference, default_config_path

    clear_preference(CONFIG_PATH_KEY)
    print(f"Config path preference cleared. Will use default: {default_config_path()}")


def cmd_config_init(args):
    """Interactive config setup."""
    from gamecloud_toolkit.secrets.domains.preferences import CONFIG_PATH_KEY, default_config_path, set_preference

    default_config = default_config_path()

    print("=== gamecloud-toolkit Configuration Setup ===\n")
    print(f"Default config location: {default_config}\n")

    if default_config.exists():
        print(f"Configuration file already exists at: {default_config}")
        response = input("Do you want to use a different config file? (y/N): ").strip().lower()
        if response != 'y':
            print(f"\nUsing existing config at: {default_config}")
            return

    print("Choose an option:")
    print("1. Copy an existing config file to default location")
    print("2. Point to an existing config file at a different location")
    print("3. Cancel (manually create config file later)")

    choice = input("\nEnter choice (1-3): ").strip()

    if choice == "1":
        source = Path(input("Enter path to existing config file: ").strip()).expanduser().resolve()
        if not source.exists():
            print(f"Error: File not found: {source}", file=sys.stderr)
            sys.exit(1)

        default_config.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, default_config)
        print(f"\nConfig copied to: {default_config}")

    elif choice == "2":
        config_file = Path(input("Enter path to config file: ").strip()).expanduser().resolve()
        if not config_file.exists():
            print(f"Error: File not found: {config_file}", file=sys.stderr)
            sys.exit(1)

        set_preference(CONFIG_PATH_KEY, str(config_file))
        print(f"\nConfig path set to: {config_file}")

    elif choice == "3":
        print("\nSetup cancelled.")
        print(f"Create your config file at: {default_config}")
        print("Or use: gamecloud config set-path <path>")

    else:
        print("Invalid choice.", file=sys.stderr)
        sys.exit(2)


def cmd_secrets_get(args):
    """Get a secret from the cache, Secret Manager, or the environment."""
    from gamecloud_toolkit.secrets.domains.cache import SecretCache
    from gamecloud_toolkit.secrets.domains.config_loader import load_config_or_empty
    from gamecloud_toolkit.secrets.domains.gcp_client import GCPSecretClient
    from gamecloud_toolkit.secrets.workflows.secret_operations import SecretResolver

    validate_secret_name(args.secret_name)

    client = GCPSecretClient.from_config(load_config_or_empty(), project_id=args.project_id)
    resolver = SecretResolver(SecretCache(), client, env_fallback=True)
    secret_value = asyncio.run(resolver.get_secret(args.secret_name, quiet=args.quiet))

    if not secret_value:
        print(f"Error: Secret '{args.secret_name}' not found in Secret Manager or env", file=sys.stderr)
        sys.exit(1)

    if args.quiet:
        print(secret_value)
    else:
        print(f"Secret '{args.secret_name}': {secret_value}")


def cmd_secrets_parse_ref(args):
    """Print the secret name a reference points at."""
    from gamecloud_toolkit.secrets.domains.references import parse_reference

    validate_reference(args.reference)
    secret_name = parse_reference(args.reference)
    if secret_name is None:
        print("Error: Malformed secret reference", file=sys.stderr)
        sys.exit(1)
    print(secret_name)


def _storage_client(args):
    from gamecloud_toolkit.clients.config import StorageConfig
    from gamecloud_toolkit.clients.storage import StorageClient
    from gamecloud_toolkit.secrets.domains.config_loader import load_config_or_empty

    config = StorageConfig.from_settings(load_config_or_empty(), cdn_endpoint=args.cdn_endpoint)
    return StorageClient(config)


def cmd_storage_url(args):
    """Print the public URL for a blob name."""
    validate_blob_name(args.blob_name)
    print(_storage_client(args).get_blob_url(args.blob_name))


def cmd_storage_name(args):
    """Print the blob name addressed by a URL."""
    blob_name = _storage_client(args).get_blob_name_from_url(args.url)
    if blob_name is None:
        print(f"Error: URL does not address a blob in the configured container: {args.url}", file=sys.stderr)
        sys.exit(1)
    print(blob_name)


def main():
    """Main CLI entrypoint.

    Exit codes:
        0 - Success
        1 - Runtime errors (configuration, network, secret not found, etc.)
        2 - Usage errors (invalid arguments, invalid secret name format, etc.)
    """
    parser = argparse.ArgumentParser(
        prog="gamecloud",
        description="gamecloud-toolkit CLI - secret resolution, storage URLs and configuration",
        epilog="""
Exit codes:
  0 - Success
  1 - Runtime error (configuration, network, secret not found, etc.)
  2 - Usage error (invalid arguments, invalid secret name format, etc.)

Environment variables:
  GCP_PROJECT - GCP project ID (overrides config file)
  GAMECLOUD_<SECTION>_<FIELD> - service settings (override config file)

Configuration:
  Default location: ~/.config/gamecloud-toolkit/config.yml
  Custom path: Set with 'gamecloud config set-path <path>'
  View current: Run 'gamecloud config show'
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser(
        "version",
        help="Show version information",
        description="Display the current version of gamecloud-toolkit"
    )

    # config command
    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
        description="Manage gamecloud-toolkit configuration"
    )
    config_subparsers = config_parser.add_subparsers(dest="config_command")

    config_set_path_parser = config_subparsers.add_parser(
        "set-path",
        help="Set config file path",
        description="""
Set the configuration file path preference.

This stores the absolute path to your config file in:
~/.config/gamecloud-toolkit/preferences.json
        """
    )
    config_set_path_parser.add_argument("path", help="Path to config file")

    config_subparsers.add_parser(
        "show",
        help="Show current config path",
        description="Display the current configuration file path and its source (preference or default)."
    )
    config_subparsers.add_parser(
        "clear",
        help="Clear config path preference",
        description="Remove the config path preference; the default location is used afterwards."
    )
    config_subparsers.add_parser(
        "init",
        help="Interactive config setup",
        description="Interactive setup wizard for gamecloud-toolkit configuration."
    )

    # secrets command
    secrets_parser = subparsers.add_parser(
        "secrets",
        help="Secret operations",
        description="Resolve secrets and secret references"
    )
    secrets_subparsers = secrets_parser.add_subparsers(dest="secrets_command")

    get_parser = secrets_subparsers.add_parser(
        "get",
        help="Get a secret value",
        description="""
Fetch a secret from GCP Secret Manager with fallback to environment variables.

Behavior:
  1. Fetches from GCP Secret Manager
  2. Falls back to the environment variable of the same name

Exit codes:
  0 - Secret found and printed
  1 - Secret not found (not in Secret Manager or environment)
  2 - Invalid secret name format
        """
    )
    get_parser.add_argument("secret_name", help="Name of the secret (format: [a-zA-Z0-9_-]+)")
    get_parser.add_argument(
        "--project-id",
        help="GCP project ID (auto-detected from GCP_PROJECT env var or config file if not provided)"
    )
    get_parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Output only the secret value (suppresses warnings and formatting, useful for scripts)"
    )

    parse_ref_parser = secrets_subparsers.add_parser(
        "parse-ref",
        help="Show the secret name inside a reference",
        description="Extract the secret name from @<Provider>(SecretUri=https://<vault>/secrets/<name>/<version>)"
    )
    parse_ref_parser.add_argument("reference", help="Secret reference string")

    # storage command
    storage_parser = subparsers.add_parser(
        "storage",
        help="Blob URL helpers",
        description="Map between blob names and public URLs for the configured container"
    )
    storage_parser.add_argument("--cdn-endpoint", help="CDN endpoint (overrides config)")
    storage_subparsers = storage_parser.add_subparsers(dest="storage_command")

    url_parser = storage_subparsers.add_parser("url", help="Print the URL for a blob name")
    url_parser.add_argument("blob_name", help="Blob name")

    name_parser = storage_subparsers.add_parser("name", help="Print the blob name for a URL")
    name_parser.add_argument("url", help="Blob URL (CDN or direct)")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(2)

    handlers = {
        ("version", None): cmd_version,
        ("config", "set-path"): cmd_config_set_path,
        ("config", "show"): cmd_config_show,
        ("config", "clear"): cmd_config_clear,
        ("config", "init"): cmd_config_init,
        ("secrets", "get"): cmd_secrets_get,
        ("secrets", "parse-ref"): cmd_secrets_parse_ref,
        ("storage", "url"): cmd_storage_url,
        ("storage", "name"): cmd_storage_name,
    }
    subcommand = getattr(args, f"{args.command}_command", None)
    help_parsers = {"config": config_parser, "secrets": secrets_parser, "storage": storage_parser}

    handler = handlers.get((args.command, subcommand))
    if handler is None:
        help_parsers.get(args.command, parser).print_help()
        sys.exit(2)

    try:
        handler(args)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
