import asyncio
import json
from typing import Any
from urllib.parse import quote

from aiohttp import ClientError, ClientSession, ClientTimeout
from loguru import logger
from pydantic import ValidationError

from recadmin import settings
from recadmin.exceptions import APIException

HEADER_REQUEST_ID = "X-Request-Id"


def quote_segment(value: str) -> str:
    """Quote a value for use as a single URL path segment."""
    return quote(value, safe="")


class CommonAPIClient:
    """Shared request plumbing for the dashboard's upstream services.

    Every failure is raised as ``APIException``. Requests are never retried;
    recovery is left to the caller (a manual refresh or the next poll tick).
    """

    def __init__(self, base_url: str, *, timeout: float | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = settings.CLIENT_REQUEST_TIMEOUT if timeout is None else timeout

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        url: str | None = None,
        expect_json: bool = True,
    ) -> Any:
        """Issue a request and return the decoded JSON body (or ``None``).

        Args:
            method: HTTP verb.
            path: Path relative to ``base_url``; used for logging when ``url`` is given.
            params: Query string parameters.
            url: Absolute URL overriding ``base_url`` + ``path``.
            expect_json: Decode the body as JSON when True, otherwise discard it.
        """
        target = url or self.url_for(path)
        logger.opt(colors=True).debug(f"\n<magenta>Making request | method: {method} | url: {target}</magenta>")

        try:
            timeout = ClientTimeout(total=self.timeout)
            async with ClientSession(timeout=timeout) as session:
                async with session.request(method, target, params=params) as response:
                    request_id = response.headers.get(HEADER_REQUEST_ID, "unknown")

                    with logger.contextualize(request_id=request_id):
                        if not 200 <= response.status < 300:
                            response_text = (await response.read()).decode("utf-8", errors="replace")
                            msg = f"{response.status} - {response_text}"
                            raise APIException(
                                f"Error making request to endpoint {path}: {msg}", status=response.status, path=path
                            )

                        if not expect_json:
                            await response.read()
                            logger.debug(f"Successfully completed request to {path}; status: {response.status}")
                            return None

                        body = await response.read()
                        try:
                            # Covers UnicodeDecodeError too
                            payload = json.loads(body)
                        except ValueError as e:
                            raise APIException(
                                f"Malformed JSON from endpoint {path}: {e}", status=response.status, path=path
                            ) from e

                        logger.debug(f"Successfully completed request to {path}; response size: {len(body)} bytes")
                        return payload
        except APIException:
            raise
        except asyncio.TimeoutError as e:
            raise APIException(f"Request to endpoint {path} timed out after {self.timeout}s", path=path) from e
        except ClientError as e:
            raise APIException(f"Error making request to endpoint {path}: {type(e).__name__}: {e}", path=path) from e

    @staticmethod
    def parse(path: str, parser, payload: Any):
        """Run a pydantic parser over a payload, mapping validation errors to ``APIException``."""
        try:
            return parser(payload)
        except ValidationError as e:
            raise APIException(f"Malformed payload from endpoint {path}: {e.error_count()} validation errors", path=path) from e
