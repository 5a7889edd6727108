"""Send a self-test markdown message to the configured DingTalk robot."""

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from dingtalk_alerter.config import Settings  # noqa: E402
from dingtalk_alerter.message import AlertMessage  # noqa: E402
from dingtalk_alerter.sender import send  # noqa: E402


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Send a test message to the DingTalk robot webhook.")
    parser.add_argument("--title", default="Alert Service Test", help="Message title")
    parser.add_argument("--text", default="# DingTalk channel check\n- Result: ok", help="Markdown body")
    return parser.parse_args(argv)


def run(argv=None) -> int:
    load_dotenv()
    args = parse_args(argv)
    settings = Settings()
    if not settings.enabled:
        print("DINGTALK_TOKEN is not set; nothing to send.")
        return 1

    result = send(settings, AlertMessage.build(args.title, args.text).serialize())
    if not result.ok:
        print(f"Delivery failed: status={result.status_code} error={result.error} body={result.response_text}")
        return 1
    print("Test message delivered.")
    return 0


if __name__ == "__main__":
    raise SystemExit(run())
