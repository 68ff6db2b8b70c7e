"""FastAPI application exposing task search."""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from task_search import __version__
from task_search.config import Settings, get_settings
from task_search.exceptions import InvalidArgumentError, SearchError
from task_search.llm.analyzer import LanguageAnalyzer
from task_search.llm.gateway import LLMGateway
from task_search.logging_config import configure_logging
from task_search.models.query import SearchQuery
from task_search.prompts.templates import PromptTemplateManager
from task_search.search.engine import TaskSearchEngine
from task_search.store.base import TaskStore
from task_search.store.memory import InMemoryTaskStore
from task_search.store.notion import NotionTaskStore

logger = structlog.get_logger(__name__)


class RankedTask(BaseModel):
    page_id: str
    title: str
    url: str
    created_time: datetime | None
    relevance_score: float
    date_proximity_score: float
    combined_score: float
    reasoning: str | None = None


class SearchResponse(BaseModel):
    results: list[RankedTask]
    total_count: int
    search_time_ms: float
    enhanced_description: str
    target_date: datetime | None
    metadata: dict[str, Any]


def create_app(
    settings: Settings | None = None,
    store: TaskStore | None = None,
    gateway: LLMGateway | None = None,
) -> FastAPI:
    """Build the application; collaborators default to the configured ones."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings)
        logger.info("Starting task search API", version=__version__)

        llm_gateway = gateway or LLMGateway(settings)
        templates = PromptTemplateManager()
        templates.preload()

        analyzer = None
        if llm_gateway.is_configured:
            analyzer = LanguageAnalyzer(llm_gateway, templates=templates, settings=settings)

        task_store = store
        if task_store is None:
            if settings.has_notion:
                task_store = NotionTaskStore(settings)
            else:
                logger.warning("NOTION_API_KEY not set, using an empty in-memory task store")
                task_store = InMemoryTaskStore(settings.notion_status_property)

        app.state.settings = settings
        app.state.llm = llm_gateway
        app.state.templates = templates
        app.state.store = task_store
        app.state.engine = TaskSearchEngine(
            task_store,
            analyzer=analyzer,
            templates=templates,
            settings=settings,
        )
        logger.info(
            "Task search API ready",
            llm_providers=llm_gateway.available_providers,
            store=type(task_store).__name__,
        )

        yield

        logger.info("Shutting down task search API")
        await llm_gateway.close()
        if isinstance(task_store, NotionTaskStore):
            await task_store.close()

    app = FastAPI(
        title="Task Search API",
        description="Semantic search over workspace task databases",
        version=__version__,
        lifespan=lifespan,
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": __version__,
            "llm_providers": app.state.llm.available_providers,
        }

    @app.post("/v1/tasks/search", response_model=SearchResponse)
    async def search_tasks(query: SearchQuery):
        """Rank the tasks of a database against a free-text query."""
        try:
            result = await app.state.engine.search(query)
        except InvalidArgumentError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except SearchError as e:
            raise HTTPException(status_code=502, detail=str(e))

        return SearchResponse(
            results=[
                RankedTask(
                    page_id=r.page.id,
                    title=r.page.title,
                    url=r.page.url,
                    created_time=r.page.created_time,
                    relevance_score=r.relevance_score,
                    date_proximity_score=r.date_proximity_score,
                    combined_score=r.combined_score,
                    reasoning=r.reasoning,
                )
                for r in result.results
            ],
            total_count=result.total_count,
            search_time_ms=result.search_time_ms,
            enhanced_description=result.query.description,
            target_date=result.query.parsed_target_date,
            metadata=result.metadata.to_dict(),
        )

    @app.get("/v1/stats")
    async def get_stats():
        """LLM usage statistics."""
        return app.state.llm.get_usage_stats()

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(
        "task_search.main:app",
        host=_settings.host,
        port=_settings.port,
        reload=_settings.debug,
        workers=1,
    )
