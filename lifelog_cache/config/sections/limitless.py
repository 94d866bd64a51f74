import os

from lifelog_cache.config.serializable import Serializable

API_KEY_ENV_VAR = "LIMITLESS_API_KEY"


class Limitless(Serializable):
    api_key: str = ""
    base_url: str = "https://api.limitless.ai"
    timeout_seconds: float = 30.0
    timezone: str = "UTC"

    @property
    def effective_api_key(self) -> str:
        return os.getenv(API_KEY_ENV_VAR) or self.api_key
