"""Fetch a GW2 Raidar API token and optionally store it in config.json.

Usage:
    python scripts/get_token.py
"""

import getpass
import sys

import helpers
import raidar


def ask_yes_no(prompt: str) -> bool:
    return input(f"{prompt} [y/N] ").strip().lower() in ("y", "yes")


def main() -> int:
    username = input("GW2 Raidar username: ").strip()
    password = getpass.getpass("GW2 Raidar password: ")
    if not username or not password:
        print("Username and password are required")
        return 1

    try:
        token = raidar.request_token(username, password)
    except raidar.RaidarError as e:
        print(f"Error: {e}")
        return 1

    print(f"Token: {token}")

    if not helpers.CONFIG_PATH.exists():
        print(f"No config at {helpers.CONFIG_PATH}, not saving")
        return 0

    if ask_yes_no(f"Save token to {helpers.CONFIG_PATH}?"):
        config = helpers.load_config()
        config["gw2raidar_token"] = token
        helpers.save_config(config)
        print("Token saved")
    return 0


if __name__ == "__main__":
    sys.exit(main())
