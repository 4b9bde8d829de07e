"""Update board extraction from the terminal page.

The page has no semantic markup for its feed. The only stable landmark is
the board's header cell ("DD/MM HH:MM" ... "Scroll to the right to read!");
every cell after it in the same table is one transmission laid out as
``timestamp``, a dotted separator and the message text.
"""
import logging
from typing import Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from ..errors import ParseError
from ..models import Update
from ..state import AntennaState

logger = logging.getLogger(__name__)

ANCHOR_HEADER = "DD/MM HH:MM"
ANCHOR_BODY = "Scroll to the right to read!"
CORRUPTED_BODY = "[CORRUPTED DATA] [RESTARTING...]"


def _three_strings(cell: Tag) -> Optional[Tuple[str, str, str]]:
    """First three text nodes of ``cell``, or None if it has fewer."""
    strings = iter(cell.strings)
    try:
        return next(strings), next(strings), next(strings)
    except StopIteration:
        return None


def is_update_board(cell: Tag) -> bool:
    decoded = _three_strings(cell)
    if decoded is None:
        return False
    header, _dots, body = decoded
    return header.strip() == ANCHOR_HEADER and body.strip() == ANCHOR_BODY


def parse_update(cell: Tag) -> Optional[Update]:
    decoded = _three_strings(cell)
    if decoded is None:
        return None
    title, _dots, body = decoded
    return Update(title=title.strip(), body=body.strip())


def _updates_in_table(table: Tag) -> Tuple[List[Update], bool]:
    """Updates after the board header, and whether the restart sentinel cut them short."""
    cells = iter(table.select("td"))

    for cell in cells:
        if is_update_board(cell):
            break
    else:
        return [], False

    updates = []
    for cell in cells:
        update = parse_update(cell)
        if update is None:
            continue
        if update.body == CORRUPTED_BODY:
            logger.warning(f"Terminal feed is restarting, keeping {len(updates)} updates")
            return updates, True
        updates.append(update)
    return updates, False


def find_updates(html: str) -> List[Update]:
    """Return the board's updates in page order (newest first).

    The restart sentinel ends extraction with whatever came before it,
    possibly nothing. Otherwise raises ParseError if no table holds a board
    with at least one update.
    """
    soup = BeautifulSoup(html, "html.parser")
    for table in soup.find_all("table"):
        updates, truncated = _updates_in_table(table)
        if updates or truncated:
            return updates
    raise ParseError("no posts found in HTML")


async def extract_updates(state: AntennaState) -> Dict:
    updates = find_updates(state.get("page", ""))
    logger.info(f"Extracted {len(updates)} updates from the terminal")
    return {
        "updates": updates,
        "stats": {**state.get("stats", {}), "extracted": len(updates)},
    }
