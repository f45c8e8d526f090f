r"""
Generate VAPID keys for web push notifications.

Writes the key file the server loads on startup. Existing files are kept
unless --force is given: replacing the keys invalidates every subscription
made with the old public key.
"""

import argparse
import os
import sys

from dotenv import load_dotenv

from src.notificator.core.errors import KeyFileError
from src.notificator.services.vapid_keys import generate_vapid_keys, save_key_file


def main(argv=None):
    load_dotenv()
    parser = argparse.ArgumentParser(description="Generate VAPID keys for web push notifications")
    parser.add_argument(
        "--key-file",
        default=os.getenv("VAPID_KEY_FILE", "vapid_keys.json"),
        help="Where to write the keys (default: VAPID_KEY_FILE or vapid_keys.json)",
    )
    parser.add_argument("--force", action="store_true", help="Overwrite an existing key file")
    args = parser.parse_args(argv)

    if os.path.exists(args.key_file) and not args.force:
        print(f"{args.key_file} already exists, use --force to replace it", file=sys.stderr)
        return 1

    print("Generating VAPID keys for web push notifications...\n")
    keys = generate_vapid_keys()
    try:
        save_key_file(args.key_file, keys)
    except KeyFileError as e:
        print(e.message, file=sys.stderr)
        return 1

    print(f"VAPID keys written to {args.key_file}\n")
    print("=" * 80)
    print(f"VAPID_PUBLIC_KEY={keys.public_key}")
    print("=" * 80)
    print()
    print("IMPORTANT:")
    print("  - Keep the key file SECRET and never commit it to version control")
    print("  - The public key is the applicationServerKey for the frontend")
    print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
