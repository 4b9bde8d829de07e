from typing import TypedDict, List, Dict

from .models import Update


class AntennaState(TypedDict):
    run_id: str
    page: str                     # Raw terminal HTML
    updates: List[Update]         # Extracted, newest first
    novel: List[Update]           # Not in the store, oldest first
    sent: List[Update]            # Delivered this run, in order
    halted: bool                  # Delivery walk stopped early
    stats: Dict
    errors: List[str]
