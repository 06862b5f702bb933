from .common_api_client import CommonAPIClient
from .model_api_client import ModelAPIClient
from .recommendation_api_client import RecommendationAPIClient

__all__ = [
    "CommonAPIClient",
    "ModelAPIClient",
    "RecommendationAPIClient",
]
