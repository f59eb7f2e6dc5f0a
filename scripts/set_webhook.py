"""
Register the Telegram webhook

Points the bot at this deployment's webhook endpoint and sets the secret
token Telegram will send back in every update.

Usage: python scripts/set_webhook.py https://example.org
"""

import asyncio
import sys
from pathlib import Path

import httpx
from dotenv import load_dotenv

sys.path.insert(0, str(Path(__file__).parent.parent))

# Load environment variables
load_dotenv()

from app.core.config import settings


async def set_webhook(base_url: str) -> bool:
    """Calls setWebhook and prints Telegram's answer"""
    if not settings.TELEGRAM_BOT_TOKEN:
        print("❌ TELEGRAM_BOT_TOKEN is not set")
        return False

    webhook_url = f"{base_url.rstrip('/')}{settings.API_PREFIX}/webhook"
    payload = {"url": webhook_url, "allowed_updates": ["message"]}
    if settings.TELEGRAM_WEBHOOK_SECRET:
        payload["secret_token"] = settings.TELEGRAM_WEBHOOK_SECRET

    print(f"📡 Registering webhook: {webhook_url}")

    async with httpx.AsyncClient(timeout=settings.COLLABORATOR_TIMEOUT_SECONDS) as client:
        response = await client.post(
            f"{settings.TELEGRAM_API_URL}/bot{settings.TELEGRAM_BOT_TOKEN}/setWebhook",
            json=payload
        )

    result = response.json()
    if result.get("ok"):
        print("✅ Webhook registered")
        return True

    print(f"❌ Telegram refused the webhook: {result.get('description')}")
    return False


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print(__doc__)
        sys.exit(1)

    ok = asyncio.run(set_webhook(sys.argv[1]))
    sys.exit(0 if ok else 1)
