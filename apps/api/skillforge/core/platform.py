from __future__ import annotations

import logging

from fastapi import Request

from skillforge.ai.client import ModelClient
from skillforge.core.cache import CacheClient
from skillforge.core.config import Settings, settings
from skillforge.services.ai_service import AIService
from skillforge.services.storage_service import LocalObjectStorage

logger = logging.getLogger(__name__)


class Platform:
    """Process-wide handles to external services, each created on first use.

    One instance lives on ``app.state`` and reaches handlers through the
    ``get_platform`` dependency, so tests can swap any handle.
    """

    def __init__(
        self,
        config: Settings,
        *,
        model_client: ModelClient | None = None,
        storage: LocalObjectStorage | None = None,
        cache: CacheClient | None = None,
    ) -> None:
        self.settings = config
        self._model_client = model_client
        self._storage = storage
        self._cache = cache
        self._ai: AIService | None = None

    @property
    def model_client(self) -> ModelClient:
        if self._model_client is None:
            if not self.settings.openai_api_key:
                logger.warning("OPENAI_API_KEY is not set; AI flows will apply their failure policies")
            self._model_client = ModelClient(
                api_key=self.settings.openai_api_key,
                model=self.settings.openai_model,
                timeout=self.settings.openai_timeout_seconds,
            )
        return self._model_client

    @property
    def storage(self) -> LocalObjectStorage:
        if self._storage is None:
            self._storage = LocalObjectStorage(self.settings.storage_dir, self.settings.public_storage_url)
        return self._storage

    @property
    def cache(self) -> CacheClient:
        if self._cache is None:
            self._cache = CacheClient(self.settings.redis_url)
        return self._cache

    @property
    def ai(self) -> AIService:
        if self._ai is None:
            self._ai = AIService(self.model_client, self.settings.flow_policies)
        return self._ai

    async def close(self) -> None:
        if self._cache is not None:
            await self._cache.close()
        if self._model_client is not None:
            await self._model_client.close()


def get_platform(request: Request) -> Platform:
    platform = getattr(request.app.state, "platform", None)
    if platform is None:
        platform = Platform(settings)
        request.app.state.platform = platform
    return platform
