"""Edit the account -> Discord identity map in config.json.

Usage:
    python scripts/edit_accounts.py                    # interactive
    python scripts/edit_accounts.py --list
    python scripts/edit_accounts.py --set abc.1234 "<@1234>"
    python scripts/edit_accounts.py --remove abc.1234
"""

import argparse
import re
import sys

import helpers

# GW2 account names look like 'Name.1234'
ACCOUNT_RE = re.compile(r"^.+\.\d{4}$")

_HELP_TEXT = (
    "Commands:\n"
    "  list                        show all mappings\n"
    "  set <account> <identity>    add or change a mapping\n"
    "  remove <account>            delete a mapping\n"
    "  save                        write changes to config.json\n"
    "  quit                        exit (asks to save pending changes)\n"
)


def format_mapping(mapping: dict) -> str:
    if not mapping:
        return "(no accounts mapped)"
    width = max(len(a) for a in mapping)
    return "\n".join(f"{a.ljust(width)}  {mapping[a]}" for a in sorted(mapping, key=str.lower))


def set_account(mapping: dict, account: str, identity: str) -> str | None:
    """Add or update a mapping. Returns an error message, or None on success."""
    if not ACCOUNT_RE.match(account):
        return f"'{account}' does not look like a GW2 account name (Name.1234)"
    if not identity:
        return "identity must not be empty"
    mapping[account] = identity
    return None


def remove_account(mapping: dict, account: str) -> bool:
    if account in mapping:
        del mapping[account]
        return True
    return False


def handle_command(mapping: dict, line: str) -> tuple[str, bool]:
    """Apply one interactive command. Returns (output text, changed)."""
    parts = line.strip().split(maxsplit=2)
    if not parts:
        return "", False
    cmd = parts[0].lower()

    if cmd == "list":
        return format_mapping(mapping), False
    if cmd == "set":
        if len(parts) != 3:
            return "usage: set <account> <identity>", False
        error = set_account(mapping, parts[1], parts[2].strip())
        return (error, False) if error else (f"{parts[1]} -> {parts[2].strip()}", True)
    if cmd == "remove":
        if len(parts) != 2:
            return "usage: remove <account>", False
        if remove_account(mapping, parts[1]):
            return f"Removed {parts[1]}", True
        return f"{parts[1]} is not mapped", False
    return _HELP_TEXT, False


def ask_yes_no(prompt: str) -> bool:
    """Ask a y/N question; end of input counts as no."""
    try:
        answer = input(f"{prompt} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def interactive(config: dict) -> int:
    mapping = config.setdefault("discord_map", {})
    dirty = False
    print(_HELP_TEXT)
    while True:
        try:
            line = input("> ")
        except EOFError:
            line = "quit"
        cmd = line.strip().lower()
        if cmd == "save":
            helpers.save_config(config)
            dirty = False
            print("Saved")
            continue
        if cmd in ("quit", "exit"):
            if dirty and ask_yes_no("Save changes?"):
                helpers.save_config(config)
                print("Saved")
            return 0
        output, changed = handle_command(mapping, line)
        dirty = dirty or changed
        if output:
            print(output)


def main() -> int:
    parser = argparse.ArgumentParser(description="Edit the account to Discord identity map")
    parser.add_argument("--list", action="store_true", help="Show all mappings and exit")
    parser.add_argument("--set", nargs=2, metavar=("ACCOUNT", "IDENTITY"), help="Add or change a mapping")
    parser.add_argument("--remove", metavar="ACCOUNT", help="Delete a mapping")
    args = parser.parse_args()

    try:
        config = helpers.load_config()
    except (OSError, ValueError) as e:
        print(f"Error: could not load config from {helpers.CONFIG_PATH}: {e}", file=sys.stderr)
        return 1

    mapping = config.setdefault("discord_map", {})

    if args.list:
        print(format_mapping(mapping))
        return 0
    if args.set:
        error = set_account(mapping, args.set[0], args.set[1])
        if error:
            print(f"Error: {error}", file=sys.stderr)
            return 2
        helpers.save_config(config)
        print(f"{args.set[0]} -> {args.set[1]}")
        return 0
    if args.remove:
        if not remove_account(mapping, args.remove):
            print(f"Error: {args.remove} is not mapped", file=sys.stderr)
            return 2
        helpers.save_config(config)
        print(f"Removed {args.remove}")
        return 0

    return interactive(config)


if __name__ == "__main__":
    sys.exit(main())
