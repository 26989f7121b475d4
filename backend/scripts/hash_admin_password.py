"""
Generate ADMIN_PASSWORD_SALT / ADMIN_PASSWORD_HASH values for the admin login.

    python backend/scripts/hash_admin_password.py 'correct horse battery staple'

Prints two env lines; paste them into backend/.env or the deployment secrets.
"""

import argparse
import getpass
import secrets
import sys

sys.path.insert(0, "backend")
from rsvp_api.core.security import hash_admin_password  # noqa: E402


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("password", nargs="?", help="admin password (prompted if omitted)")
    parser.add_argument("--salt", default=None, help="reuse an existing salt instead of generating one")
    args = parser.parse_args()

    password = args.password or getpass.getpass("Admin password: ")
    if not password:
        parser.error("password must not be empty")

    salt = args.salt or secrets.token_hex(16)
    print(f"ADMIN_PASSWORD_SALT={salt}")
    print(f"ADMIN_PASSWORD_HASH={hash_admin_password(salt, password)}")


if __name__ == "__main__":
    main()
