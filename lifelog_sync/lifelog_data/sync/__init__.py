from .coordinator import SyncCoordinator, SyncPassResult
from .resolver import LifelogsFailure, LifelogsResult, QueryResolver
from .retention import RetentionPruner
from .scheduler import PeriodicTask
