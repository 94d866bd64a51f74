import logging
from http import HTTPStatus
from urllib.parse import urlparse

import requests
from tenacity import RetryError, retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from lifelog_cache.config import settings
from lifelog_cache.exceptions import RemoteFetchError
from lifelog_cache.models import LifelogEntry, LifelogPage
from lifelog_cache.type_defs import JsonObject, QueryParams, is_json_object

logger = logging.getLogger(__name__)

API_VERSION = "v1"
RESPONSE_PREVIEW_LENGTH = 300


def _preview_response_body(text: str) -> str:
    if len(text) <= RESPONSE_PREVIEW_LENGTH:
        return text
    return f"{text[:RESPONSE_PREVIEW_LENGTH]}..."


def _request_error_context(url: str, response: requests.Response) -> str:
    content_type = response.headers.get("Content-Type") or "unknown"
    return (
        f"url={urlparse(url).path} status={response.status_code} "
        f"content_type={content_type} body={_preview_response_body(response.text)}"
    )


def _serialize_params(params: QueryParams) -> dict[str, str | int | float]:
    serialized: dict[str, str | int | float] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            serialized[key] = "true" if value else "false"
        else:
            serialized[key] = value
    return serialized


class Client(requests.Session):
    MAX_RETRIES = 3

    def __init__(self, api_key: str = "", base_url: str = "", timeout: float | None = None):
        super().__init__()

        self.api_key = api_key or settings.limitless.effective_api_key
        self.base_url = (base_url or settings.limitless.base_url).rstrip("/")
        self.timeout = float(timeout if timeout is not None else settings.limitless.timeout_seconds)
        if not self.api_key or not self.base_url:
            raise ValueError("A Limitless api_key and base_url must be provided.")

        self.headers.update({"Accept": "application/json", "X-API-Key": self.api_key})

    @retry(
        stop=stop_after_attempt(MAX_RETRIES),
        wait=wait_exponential(min=1, max=10),
        retry=retry_if_exception_type(requests.RequestException),
    )
    def request(self, method: str, url: str, *args, **kwargs) -> requests.Response:
        kwargs.setdefault("timeout", self.timeout)
        response = super().request(method, url, *args, **kwargs)

        if response.status_code == HTTPStatus.TOO_MANY_REQUESTS.value:
            logger.info("Rate limit reached. Waiting and retrying...")
            raise requests.RequestException("Rate limit reached")

        if response.status_code == HTTPStatus.UNAUTHORIZED.value:
            logger.error("Received authorization error: %s", _preview_response_body(response.text))
            raise PermissionError("Authorization failed with the provided API key.")

        if response.status_code >= HTTPStatus.INTERNAL_SERVER_ERROR.value:
            logger.warning("Request failed with status code %s. Retrying...", response.status_code)
            raise requests.RequestException(
                f"Received unexpected status code: {_request_error_context(url, response)}"
            )

        if response.status_code != HTTPStatus.OK.value:
            raise ValueError(f"Received {response.status_code}: {_request_error_context(url, response)}")

        return response

    def fetch_from_api(self, endpoint: str, params: QueryParams | None = None) -> JsonObject:
        url = f"{self.base_url}/{API_VERSION}/{endpoint.lstrip('/')}"
        response = self.get(url, params=_serialize_params(params or {}))
        payload = response.json()
        if not is_json_object(payload):
            raise ValueError(f"Unexpected payload type from {endpoint}: {type(payload).__name__}")
        return payload

    def fetch_page(self, params: QueryParams) -> LifelogPage:
        """Fetch one page of lifelogs; every failure surfaces as ``RemoteFetchError``."""
        logger.debug("GET lifelogs params=%s", params)
        try:
            payload = self.fetch_from_api("lifelogs", params)
            return self._parse_lifelogs_payload(payload)
        except RetryError as error:
            last_error = error.last_attempt.exception()
            raise RemoteFetchError(str(last_error or error)) from error
        except (requests.RequestException, PermissionError, ValueError) as error:
            raise RemoteFetchError(str(error)) from error

    @staticmethod
    def _parse_lifelogs_payload(payload: JsonObject) -> LifelogPage:
        data = payload.get("data") or {}
        if not isinstance(data, dict):
            raise ValueError(f"Invalid 'data' payload type: {type(data).__name__}")
        rows = data.get("lifelogs") or []
        if not isinstance(rows, list):
            raise ValueError("Missing or invalid 'lifelogs' list")

        entries: list[LifelogEntry] = []
        for row in rows:
            if not is_json_object(row):
                raise ValueError(f"Invalid lifelog payload type: {type(row).__name__}")
            entries.append(LifelogEntry.from_dict(row))

        meta = payload.get("meta") or {}
        if not isinstance(meta, dict):
            raise ValueError(f"Invalid 'meta' payload type: {type(meta).__name__}")
        lifelogs_meta = meta.get("lifelogs") or {}
        next_cursor = lifelogs_meta.get("nextCursor") if isinstance(lifelogs_meta, dict) else None
        return LifelogPage(entries=entries, next_cursor=next_cursor if isinstance(next_cursor, str) and next_cursor else None)
