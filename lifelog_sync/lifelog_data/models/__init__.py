from .lifelog import Lifelog
from .sync_state import SyncState
