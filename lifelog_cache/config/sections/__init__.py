from .cache import Cache
from .limitless import Limitless

__all__ = ["Cache", "Limitless"]
