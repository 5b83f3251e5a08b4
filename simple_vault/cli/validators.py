"""Input validation for CLI arguments."""
import sys
from typing import Tuple


def validate_secret_name(name: str) -> None:
    """
    Validate that a secret name was given.

    The vault requires a name; everything else about it is the server's call.

    Raises:
        SystemExit with code 2 if validation fails
    """
    if not name or not name.strip():
        print("Error: Secret name cannot be empty", file=sys.stderr)
        sys.exit(2)


def parse_key_value(pair: str) -> Tuple[str, str]:
    """
    Split a KEY=VALUE argument.

    Only the first '=' separates key from value, so values may contain '='.

    Args:
        pair: Raw argument text

    Returns:
        (key, value) tuple

    Raises:
        SystemExit with code 2 if the pair is malformed
    """
    if "=" not in pair:
        print(f"Error: Invalid key/value pair '{pair}'", file=sys.stderr)
        print("\nExpected format: KEY=VALUE (e.g. DB_USER=root)", file=sys.stderr)
        sys.exit(2)

    key, value = pair.split("=", 1)
    if not key:
        print(f"Error: Missing key in '{pair}'", file=sys.stderr)
        sys.exit(2)
    if not value:
        print(f"Error: Empty value for key '{key}'", file=sys.stderr)
        print("\nUse --unset to remove a key instead.", file=sys.stderr)
        sys.exit(2)
    return key, value
