"""Input validation for CLI arguments."""
import re
import sys

from ..secrets.domains.references import is_reference


def validate_secret_name(name: str) -> None:
    """
    Validate a secret name before it is looked up.

    Secret stores allow only: [a-zA-Z0-9_-]

    Raises:
        SystemExit with code 2 if validation fails
    """
    if not name:
        print("Error: Secret name cannot be empty", file=sys.stderr)
        print("\nSecret names must match: [a-zA-Z0-9_-]", file=sys.stderr)
        sys.exit(2)

    if not re.match(r'^[a-zA-Z0-9_-]+$', name):
        print(f"Error: Invalid secret name '{name}'", file=sys.stderr)
        print("\nAllowed characters: letters, numbers, underscores (_), hyphens (-)", file=sys.stderr)
        print("Not allowed: dots (.), spaces, special characters (@, $, !, etc.)", file=sys.stderr)
        sys.exit(2)


def validate_reference(raw: str) -> None:
    """
    Require the secret-reference prefix.

    Raises:
        SystemExit with code 2 if raw is not a reference at all
    """
    if not is_reference(raw):
        print("Error: Value is not a secret reference", file=sys.stderr)
        print("\nExpected format: @<Provider>(SecretUri=https://<vault>/secrets/<name>/<version>)", file=sys.stderr)
        sys.exit(2)


def validate_blob_name(name: str) -> None:
    """
    Blob names produced by uploads only contain [A-Za-z0-9._-].

    Raises:
        SystemExit with code 2 if validation fails
    """
    if not name or not re.match(r'^[A-Za-z0-9._-]+$', name):
        print(f"Error: Invalid blob name '{name}'", file=sys.stderr)
        print("\nAllowed characters: letters, numbers, dots (.), underscores (_), hyphens (-)", file=sys.stderr)
        sys.exit(2)
