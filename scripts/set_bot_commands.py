"""Register the bot's command menu and optional profile fields via the Bot API.

Usage:
  TELEGRAM_BOT_TOKEN=... python scripts/set_bot_commands.py --name "Bunder Bot" --description "Short description"
"""
import argparse
import sys

import requests

from bunder_bot.config import Settings
from bunder_bot.router import COMMANDS

API = "https://api.telegram.org"


def build_commands():
    return [{"command": name, "description": description} for name, description in COMMANDS]


def call(token, method, data=None, timeout=10):
    url = f"{API}/bot{token}/{method}"
    if data is None:
        r = requests.get(url, timeout=timeout)
    else:
        r = requests.post(url, json=data, timeout=timeout)
    return r.json()


def main(argv=None):
    parser = argparse.ArgumentParser()
    parser.add_argument("--name", help="Bot display name to set", default=None)
    parser.add_argument("--description", help="Bot description to set", default=None)
    args = parser.parse_args(argv)

    token = Settings.from_env().telegram_token
    if not token:
        print("TELEGRAM_BOT_TOKEN not set in environment")
        sys.exit(1)

    print("Setting commands...")
    print(call(token, "setMyCommands", {"commands": build_commands()}))

    if args.name:
        print("Setting display name...")
        print(call(token, "setMyName", {"name": args.name}))

    if args.description:
        print("Setting description...")
        print(call(token, "setMyDescription", {"description": args.description}))


if __name__ == "__main__":
    main()
