"""LangGraph orchestrator for one antenna run."""
import logging
import uuid

from langgraph.graph import END, START, StateGraph

from .config import TERMINAL_URL
from .database import check_seen, get_store, persist_sent
from .nodes.extractor import extract_updates
from .nodes.fetcher import fetch_page, get_terminal_body
from .nodes.notifier import DiscordNotifier, notify_new
from .state import AntennaState

logger = logging.getLogger(__name__)


def build_graph():
    builder = StateGraph(AntennaState)

    builder.add_node("fetch_page", fetch_page)
    builder.add_node("extract_updates", extract_updates)
    builder.add_node("check_seen", check_seen)
    builder.add_node("notify_new", notify_new)
    builder.add_node("persist_sent", persist_sent)

    builder.add_edge(START, "fetch_page")
    builder.add_edge("fetch_page", "extract_updates")
    builder.add_edge("extract_updates", "check_seen")
    builder.add_edge("check_seen", "notify_new")
    builder.add_edge("notify_new", "persist_sent")
    builder.add_edge("persist_sent", END)

    return builder.compile()


async def run_antenna(
    run_id: str = None,
    *,
    store=None,
    notifier=None,
    fetcher=None,
    url: str = None,
) -> AntennaState:
    """Run the pipeline once and return the final state.

    Fetch, parse and lookup failures propagate as AntennaError subclasses;
    a failed delivery only shows up as ``halted`` in the returned state.
    """
    if run_id is None:
        run_id = str(uuid.uuid4())
    if notifier is None:
        notifier = DiscordNotifier.from_env()
    if store is None:
        store = get_store()

    logger.info(f"Starting antenna run: {run_id}")
    await store.ensure_indexes()

    graph = build_graph()
    initial_state: AntennaState = {
        "run_id": run_id,
        "page": "",
        "updates": [],
        "novel": [],
        "sent": [],
        "halted": False,
        "stats": {},
        "errors": [],
    }
    config = {
        "configurable": {
            "store": store,
            "notifier": notifier,
            "fetcher": fetcher or get_terminal_body,
            "url": url or TERMINAL_URL,
        }
    }

    result = await graph.ainvoke(initial_state, config=config)
    logger.info(f"Run {run_id} complete. Stats: {result.get('stats', {})}")
    return result
