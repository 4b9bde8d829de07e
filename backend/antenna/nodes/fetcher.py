"""Terminal page fetcher."""
import asyncio
import logging
from typing import Dict

import aiohttp
from langchain_core.runnables import RunnableConfig

from ..config import TERMINAL_URL
from ..errors import TransportError
from ..state import AntennaState

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/121.0 Safari/537.36 TerminalAntenna/1.0"
)


async def get_terminal_body(url: str, timeout: float = 30) -> str:
    """GET ``url`` once and return the body as text.

    Raises TransportError on network failure or a non-2xx status.
    """
    headers = {"User-Agent": USER_AGENT, "Accept": "text/html, */*"}
    try:
        async with aiohttp.ClientSession(headers=headers) as session:
            async with session.get(url, timeout=aiohttp.ClientTimeout(total=timeout)) as resp:
                resp.raise_for_status()
                return await resp.text(errors="replace")
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        raise TransportError(f"fetching {url} failed: {e!r}") from e


async def fetch_page(state: AntennaState, config: RunnableConfig) -> Dict:
    configurable = config.get("configurable", {})
    url = configurable.get("url", TERMINAL_URL)
    fetcher = configurable.get("fetcher", get_terminal_body)

    page = await fetcher(url)
    logger.info(f"Fetched {len(page)} chars from {url}")
    return {"page": page}
