"""Print an APP_PIN_HASH value for the given PIN."""

import getpass
import sys

from services.auth_gate import hash_pin


def main():
    pin = sys.argv[1] if len(sys.argv) > 1 else getpass.getpass("PIN: ")
    try:
        print(hash_pin(pin))
    except ValueError as exc:
        print(exc, file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
