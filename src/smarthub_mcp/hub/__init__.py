"""Hub logic: state, protocol state machine, collection loop and run control."""

from .collector import COLLECTION_WINDOW, VirtualClock, collect_responses
from .controller import SmartHub
from .protocol import handle_packet, process_batch, seed_status
from .state import DEFAULT_HUB_NAME, HubState
