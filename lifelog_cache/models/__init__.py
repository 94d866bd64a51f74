from .lifelog import LifelogEntry, LifelogPage
from .query import LifelogQuery, SORT_DIRECTIONS
