"""Discord webhook delivery and the in-order delivery walk."""
import logging
from typing import Dict, List, Optional

import httpx
from langchain_core.runnables import RunnableConfig

from ..config import require
from ..errors import ConfigError, TransportError
from ..models import Update, WalkResult
from ..state import AntennaState

logger = logging.getLogger(__name__)

MAX_DISCORD_CHARS = 2000


def format_mention(mention_id: str) -> str:
    mention_id = mention_id.strip()
    if mention_id.startswith("<@"):
        return mention_id
    return f"<@&{mention_id}>"


def format_message(update: Update, mention_id: str = "") -> str:
    content = str(update)
    if mention_id:
        content = f"{format_mention(mention_id)} {content}"
    if len(content) > MAX_DISCORD_CHARS:
        content = content[: MAX_DISCORD_CHARS - 1] + "…"
    return content


class DiscordNotifier:
    """Posts one message per update to a Discord webhook."""

    def __init__(
        self,
        webhook_url: str,
        mention_id: str = "",
        timeout: float = 15,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not webhook_url or not webhook_url.strip():
            raise ConfigError("Discord webhook URL is empty")
        self.webhook_url = webhook_url.strip()
        self.mention_id = mention_id
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_env(cls) -> "DiscordNotifier":
        return cls(require("DISCORD_WEBHOOK"), require("DISCORD_MENTION_ID"))

    async def send_update(self, update: Update) -> None:
        """Deliver ``update``; raises TransportError unless Discord answers 2xx."""
        content = format_message(update, self.mention_id)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(self.webhook_url, json={"content": content})
                resp.raise_for_status()
        except httpx.HTTPError as e:
            raise TransportError(f"Discord webhook failed: {e}") from e


async def deliver_in_order(notifier, updates: List[Update]) -> WalkResult:
    """Send ``updates`` one at a time, stopping at the first failure."""
    result = WalkResult()
    for update in updates:
        try:
            await notifier.send_update(update)
        except TransportError as e:
            result.failed = update
            result.error = e
            break
        result.sent.append(update)
    return result


async def notify_new(state: AntennaState, config: RunnableConfig) -> Dict:
    novel = state.get("novel", [])
    stats = {**state.get("stats", {})}
    if not novel:
        logger.info("No new transmissions")
        return {"sent": [], "halted": False, "stats": {**stats, "sent": 0, "halted": False}}

    notifier = config["configurable"]["notifier"]
    walk = await deliver_in_order(notifier, novel)

    errors = list(state.get("errors", []))
    if walk.halted:
        remaining = len(novel) - len(walk.sent)
        logger.error(
            f"Delivery failed for '{walk.failed}', leaving {remaining} updates "
            f"for the next run: {walk.error}"
        )
        errors.append(f"delivery: {walk.error}")
    logger.info(f"Sent {len(walk.sent)}/{len(novel)} new transmissions")

    return {
        "sent": walk.sent,
        "halted": walk.halted,
        "stats": {**stats, "sent": len(walk.sent), "halted": walk.halted},
        "errors": errors,
    }
