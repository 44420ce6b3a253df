"""
Dependency injection container for ContextIQ components.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, AsyncIterator, Callable, Dict, Generic, Optional, TypeVar
from uuid import uuid4

import structlog

from contextiq.config import Config

if TYPE_CHECKING:
    from contextiq.analysis import AnalysisClient
    from contextiq.crawler import HttpClient, ScrapeService, WebContentFetcher
    from contextiq.pipeline import AcquisitionPipeline

T = TypeVar("T")


class LazyInstance(Generic[T]):
    """Lazy-loaded instance with lifecycle management."""

    def __init__(self, factory: Callable[..., T], *args: Any, **kwargs: Any) -> None:
        self._factory = factory
        self._args = args
        self._kwargs = kwargs
        self._instance: Optional[T] = None
        self._initialized = False

    async def get(self) -> T:
        """Get or create the instance."""
        if not self._initialized:
            self._instance = self._factory(*self._args, **self._kwargs)
            if callable(getattr(self._instance, "initialize", None)):
                await self._instance.initialize()  # type: ignore[union-attr]
            self._initialized = True
        assert self._instance is not None
        return self._instance

    async def cleanup(self) -> None:
        """Clean up the instance."""
        if self._instance is not None and callable(getattr(self._instance, "close", None)):
            await self._instance.close()  # type: ignore[union-attr]
        self._instance = None
        self._initialized = False


class DependencyContainer:
    """
    Wires configuration, the shared HTTP client and the acquisition and
    analysis components. Components are built on first use and share one
    HTTP session.
    """

    def __init__(self, config_path: Optional[Path] = None, config: Optional[Config] = None) -> None:
        self.config_path = config_path
        self.config: Optional[Config] = config
        self.logger = structlog.get_logger(self.__class__.__name__)

        self._instances: Dict[str, LazyInstance[Any]] = {}
        self._instances_lock = asyncio.Lock()

        self.container_id = str(uuid4())
        self.is_running = False

    async def initialize(self) -> None:
        """Load configuration (unless given) and prepare lazy instances."""
        if self.config is None:
            self.load_config()
        self._create_instances()
        self.is_running = True

        self.logger.info(
            "Dependency container initialized",
            container_id=self.container_id,
            config_path=str(self.config_path) if self.config_path else "default",
        )

    def load_config(self) -> None:
        if self.config_path and self.config_path.exists():
            self.config = Config.from_yaml(self.config_path)
        else:
            self.config = Config()

    def _create_instances(self) -> None:
        if self.config is None:
            raise RuntimeError("Configuration must be loaded before creating instances")

        # Import modules only when needed to avoid circular imports
        from contextiq.analysis import AnalysisClient
        from contextiq.crawler import HttpClient, ScrapeService, WebContentFetcher
        from contextiq.extractor import FileTypeDispatcher, HtmlReducer
        from contextiq.normalizer import ContentNormalizer
        from contextiq.pipeline import AcquisitionPipeline

        config = self.config
        http_client = LazyInstance(HttpClient, config.fetcher)
        reducer = HtmlReducer()
        normalizer = ContentNormalizer(
            min_text_length=config.upload.min_text_length,
            min_web_length=config.fetcher.min_web_length,
        )

        async def build_fetcher() -> WebContentFetcher:
            # Without a hosted primary the in-process scrape service takes its place
            primary = None if config.fetcher.primary_service_url else await self.get_scrape_service()
            return WebContentFetcher(config.fetcher, await http_client.get(), reducer, primary=primary)

        async def build_scrape_service() -> ScrapeService:
            return ScrapeService(config.fetcher, await http_client.get(), reducer)

        async def build_analysis() -> AnalysisClient:
            return AnalysisClient(config.analysis, await http_client.get())

        async def build_pipeline() -> AcquisitionPipeline:
            dispatcher = FileTypeDispatcher(config.upload, config.ocr, normalizer=normalizer)
            return AcquisitionPipeline(dispatcher, await self.get_fetcher(), normalizer)

        self._instances = {
            "http_client": http_client,
            "fetcher": _AsyncLazy(build_fetcher),
            "scrape_service": _AsyncLazy(build_scrape_service),
            "analysis": _AsyncLazy(build_analysis),
            "pipeline": _AsyncLazy(build_pipeline),
        }

    async def _get(self, name: str) -> Any:
        if not self._instances:
            raise RuntimeError("Container not initialized. Call initialize() first.")
        return await self._instances[name].get()

    async def get_http_client(self) -> HttpClient:
        """Get the shared HTTP client instance."""
        async with self._instances_lock:
            return await self._get("http_client")  # type: ignore[no-any-return]

    async def get_fetcher(self) -> WebContentFetcher:
        return await self._get("fetcher")  # type: ignore[no-any-return]

    async def get_scrape_service(self) -> ScrapeService:
        return await self._get("scrape_service")  # type: ignore[no-any-return]

    async def get_analysis(self) -> AnalysisClient:
        return await self._get("analysis")  # type: ignore[no-any-return]

    async def get_pipeline(self) -> AcquisitionPipeline:
        return await self._get("pipeline")  # type: ignore[no-any-return]

    @asynccontextmanager
    async def lifecycle(self) -> AsyncIterator[DependencyContainer]:
        """Context manager for proper lifecycle management."""
        try:
            await self.initialize()
            yield self
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        """Close every instance that was created."""
        if not self.is_running:
            return

        self.logger.info("Shutting down dependency container", container_id=self.container_id)
        for name, instance in self._instances.items():
            try:
                await instance.cleanup()
            except Exception as e:
                self.logger.error(f"Error cleaning up {name}", error=str(e))

        self.is_running = False
        self.logger.info("Dependency container shutdown complete")

    def get_health_status(self) -> Dict[str, Any]:
        """Get health status of the container."""
        return {
            "container_id": self.container_id,
            "is_running": self.is_running,
            "config_loaded": self.config is not None,
            "instances_count": len(self._instances),
            "config_path": str(self.config_path) if self.config_path else None,
        }


class _AsyncLazy(LazyInstance[T]):
    """LazyInstance whose factory is a coroutine function; cleanup is left to its dependencies."""

    async def get(self) -> T:
        if not self._initialized:
            self._instance = await self._factory()  # type: ignore[misc]
            self._initialized = True
        assert self._instance is not None
        return self._instance

    async def cleanup(self) -> None:
        self._instance = None
        self._initialized = False
