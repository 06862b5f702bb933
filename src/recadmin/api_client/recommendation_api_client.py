from loguru import logger
from pydantic import TypeAdapter

from recadmin import settings
from recadmin.exceptions import APIException
from recadmin.models.api_models import ModelStat

from .common_api_client import CommonAPIClient

_MODEL_STATS = TypeAdapter(list[ModelStat])


class RecommendationAPIClient(CommonAPIClient):
    """Client for the user/log/recommendation API."""

    def __init__(self, base_url: str | None = None, *, timeout: float | None = None):
        super().__init__(base_url or settings.RECOMMENDATION_API_URL, timeout=timeout)

    async def count_users(self) -> int:
        """Number of registered users. The endpoint returns full records; only the length is used."""
        path = "/users"
        response = await self.request("GET", path)
        if not isinstance(response, list):
            raise APIException(f"Malformed payload from endpoint {path}: expected a list", path=path)
        logger.debug(f"Fetched {len(response)} users")
        return len(response)

    async def count_user_logs(self) -> int:
        path = "/user-log/count"
        response = await self.request("GET", path)
        # bool is an int subclass and never a valid count
        if isinstance(response, bool) or not isinstance(response, int) or response < 0:
            raise APIException(f"Malformed payload from endpoint {path}: expected a non-negative integer", path=path)
        return response

    async def get_model_statistics(self) -> list[ModelStat]:
        path = "/recommendations/statistics/models"
        response = await self.request("GET", path)
        stats = self.parse(path, _MODEL_STATS.validate_python, response)
        logger.debug(f"Fetched statistics for {len(stats)} model versions")
        return stats
