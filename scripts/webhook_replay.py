"""
Replay a sample Green API webhook payload against a running server.

Useful for exercising the pipeline (dedup, echo filter, Sheets, auto-reply)
without sending a real WhatsApp message.

Usage:
    python scripts/webhook_replay.py [--text "Hello"] [--image] [--outgoing]
        [--from PHONE_NUMBER] [--message-id ID] [--repeat N] [--url URL]
"""

import json
import sys
import time
from pathlib import Path

# Add app directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import httpx

from app.core.config import settings


def create_text_message_payload(
    phone: str,
    text: str,
    message_id: str = "BAE5F4886F8F2D5A",
    outgoing: bool = False,
) -> dict:
    """Create a sample incomingMessageReceived (or outgoingMessageReceived) payload."""
    chat_id = f"{phone}@c.us"
    return {
        "typeWebhook": "outgoingMessageReceived" if outgoing else "incomingMessageReceived",
        "instanceData": {
            "idInstance": settings.green_api_id or "1101000001",
            "wid": "11001234567@c.us",
            "typeInstance": "whatsapp",
        },
        "timestamp": int(time.time()),
        "idMessage": message_id,
        "senderData": {
            "chatId": chat_id,
            "sender": chat_id,
            "senderName": "Test User",
        },
        "messageData": {
            "typeMessage": "textMessage",
            "textMessageData": {"textMessage": text},
        },
    }


def create_image_message_payload(
    phone: str,
    caption: str = "This is a test image",
    message_id: str = "BAE5F4886F8F2D5B",
) -> dict:
    """Create a sample imageMessage payload (never triggers an auto-reply)."""
    chat_id = f"{phone}@c.us"
    return {
        "typeWebhook": "incomingMessageReceived",
        "timestamp": int(time.time()),
        "idMessage": message_id,
        "senderData": {"chatId": chat_id, "sender": chat_id, "senderName": "Test User"},
        "messageData": {
            "typeMessage": "imageMessage",
            "fileMessageData": {
                "downloadUrl": "https://example.com/image.jpg",
                "caption": caption,
                "mimeType": "image/jpeg",
            },
        },
    }


def send_webhook_payload(payload: dict, base_url: str) -> bool:
    """POST the payload to /webhook and print the acknowledgment."""
    webhook_url = f"{base_url.rstrip('/')}/webhook"

    print(f"Sending webhook payload to: {webhook_url}")
    print(f"   Payload: {json.dumps(payload, indent=2, ensure_ascii=False)}")
    print()

    try:
        with httpx.Client(timeout=10.0) as client:
            started = time.perf_counter()
            response = client.post(webhook_url, json=payload)
            elapsed_ms = (time.perf_counter() - started) * 1000

        print("Response:")
        print(f"   Status: {response.status_code} ({elapsed_ms:.0f} ms)")
        print(f"   Body: {response.text}")
        print(f"   Correlation ID: {response.headers.get('X-Correlation-ID')}")
        print()
    except httpx.HTTPError as e:
        print(f"Error sending webhook: {e}")
        return False

    if response.status_code != 200:
        print("Webhook returned error status")
        return False
    return True


def main():
    """CLI entrypoint."""
    import argparse

    parser = argparse.ArgumentParser(description="Replay Green API webhook payload")
    parser.add_argument("--text", type=str, default="Hello, I have a question", help="Message text")
    parser.add_argument("--image", action="store_true", help="Send an image message instead of text")
    parser.add_argument(
        "--outgoing",
        action="store_true",
        help="Send as outgoingMessageReceived (should be dropped as an echo)",
    )
    parser.add_argument(
        "--from",
        dest="phone",
        type=str,
        default="972501234567",
        help="Sender phone number (country code, no +)",
    )
    parser.add_argument("--message-id", type=str, default="BAE5F4886F8F2D5A", help="idMessage")
    parser.add_argument(
        "--repeat",
        type=int,
        default=1,
        help="Send the same payload N times (repeats should be dropped as duplicates)",
    )
    parser.add_argument(
        "--url",
        type=str,
        default=f"http://localhost:{settings.port}",
        help="Server base URL",
    )

    args = parser.parse_args()

    if args.image:
        payload = create_image_message_payload(args.phone, message_id=args.message_id)
    else:
        payload = create_text_message_payload(
            args.phone, args.text, message_id=args.message_id, outgoing=args.outgoing
        )

    ok = True
    for _ in range(max(args.repeat, 1)):
        ok = send_webhook_payload(payload, args.url) and ok
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
