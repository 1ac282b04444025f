"""Discord webhook helpers."""

import requests

TIMEOUT = 30


def send_payload(url: str, text: str) -> bool:
    """POST a serialized JSON payload to a webhook. Returns True on success."""
    try:
        resp = requests.post(
            url,
            data=text.encode("utf-8"),
            headers={"Content-Type": "application/json"},
            timeout=TIMEOUT,
        )
    except requests.RequestException as e:
        print(f"Discord webhook failed: {e}")
        return False
    if 200 <= resp.status_code < 300:
        return True
    print(f"Discord webhook failed: HTTP {resp.status_code} {resp.text[:300]}")
    return False
