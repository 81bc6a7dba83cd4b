"""HTTP service wiring the RAG pipeline and answer index sync together."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..config.logging import LoggerMixin, setup_logging
from ..config.settings import Settings
from ..models.answers import AnswerEvent, Question
from ..models.rag import AskRequest, AskResponse
from ..rag.embeddings import EmbeddingManager
from ..rag.generation import ChatCompletionModel, GenerativeModel
from ..rag.index import VectorIndex, create_vector_index
from ..rag.orchestrator import RAGOrchestrator
from ..sync.outbox import SyncOutbox, create_outbox
from ..sync.reconciler import IndexReconciler
from ..sync.worker import AnswerSyncWorker
from .exceptions import (
    AnswerRAGError,
    DependencyError,
    OutboxError,
    ValidationError,
    VectorIndexError,
)


class AnswerRAGServer(LoggerMixin):
    """Owns the component lifecycle and exposes the HTTP surface.

    Components can be passed in already built; anything left out is created
    from settings at startup.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        embedding_manager: Optional[EmbeddingManager] = None,
        vector_index: Optional[VectorIndex] = None,
        generative_model: Optional[GenerativeModel] = None,
        outbox: Optional[SyncOutbox] = None,
    ) -> None:
        self.settings = settings or Settings()
        self.settings.create_directories()

        setup_logging(self.settings)
        self.logger.info("Initializing answer-rag server", settings=repr(self.settings))

        self.embedding_manager = embedding_manager
        self.vector_index = vector_index
        self.generative_model = generative_model
        self.outbox = outbox

        self.worker: Optional[AnswerSyncWorker] = None
        self.reconciler: Optional[IndexReconciler] = None
        self.orchestrator: Optional[RAGOrchestrator] = None

        self.app: Optional[FastAPI] = None
        self._running = False
        self._index_available = False

    @asynccontextmanager
    async def lifespan(self, app: FastAPI) -> AsyncGenerator[None, None]:
        """FastAPI lifespan context manager."""
        try:
            await self._startup()
            yield
        finally:
            await self._shutdown()

    async def _startup(self) -> None:
        """Start up all server components."""
        self.logger.info("Starting answer-rag components")

        try:
            if self.embedding_manager is None:
                self.embedding_manager = EmbeddingManager(self.settings)
            await self.embedding_manager.initialize()

            if self.vector_index is None:
                self.vector_index = create_vector_index(self.settings)
            await self._initialize_index()

            if self.generative_model is None:
                self.generative_model = ChatCompletionModel(self.settings)
            await self.generative_model.initialize()

            if self.outbox is None:
                self.outbox = create_outbox(self.settings)
            await self.outbox.initialize()

            self.worker = AnswerSyncWorker(
                self.settings, self.embedding_manager, self.vector_index, self.outbox
            )
            self.orchestrator = RAGOrchestrator(
                self.settings, self.embedding_manager, self.vector_index, self.generative_model
            )
            self.reconciler = IndexReconciler(self.settings, self.worker, self.outbox)
            await self.reconciler.start()

            self._running = True
            self.logger.info("All server components started successfully")

        except Exception as e:
            self.logger.error("Failed to start server components", error=str(e))
            raise

    async def _initialize_index(self) -> None:
        """Open the vector index; an unreachable index leaves the service degraded."""
        try:
            await self.vector_index.initialize()
            self._index_available = True
        except VectorIndexError as e:
            self._index_available = False
            self.logger.warning(
                "Vector index unavailable, serving without retrieval context",
                backend=self.vector_index.backend_name,
                error=str(e),
            )

    async def _shutdown(self) -> None:
        """Shut down all server components."""
        self.logger.info("Shutting down answer-rag server")
        self._running = False
        self._index_available = False

        if self.reconciler:
            await self.reconciler.stop()

        if self.worker:
            await self.worker.drain()

        # Shutdown components in reverse order
        if self.outbox:
            await self.outbox.close()

        if self.generative_model:
            await self.generative_model.close()

        if self.vector_index:
            await self.vector_index.close()

        if self.embedding_manager:
            await self.embedding_manager.close()

        self.logger.info("Server shutdown complete")

    def create_app(self) -> FastAPI:
        """Create and configure the FastAPI application."""
        from .. import __version__

        app = FastAPI(
            title="answer-rag",
            description="Question answering over indexed community answers",
            version=__version__,
            lifespan=self.lifespan,
        )

        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        @app.exception_handler(RequestValidationError)
        async def request_validation_handler(request, exc: RequestValidationError):
            error = ValidationError("Invalid request body")
            content = error.to_dict()
            content["details"]["errors"] = [
                {"loc": list(err.get("loc", ())), "msg": err.get("msg")} for err in exc.errors()
            ]
            return JSONResponse(status_code=400, content=content)

        @app.exception_handler(AnswerRAGError)
        async def answer_rag_exception_handler(request, exc: AnswerRAGError):
            status_code = 503 if isinstance(exc, (DependencyError, OutboxError)) else 400
            return JSONResponse(status_code=status_code, content=exc.to_dict())

        @app.exception_handler(Exception)
        async def general_exception_handler(request, exc: Exception):
            self.logger.error("Unhandled exception", error=str(exc), exc_info=True)
            return JSONResponse(
                status_code=500,
                content={"error": "Internal server error"}
            )

        @app.get("/health")
        async def health_check():
            """Health check endpoint."""
            if not self._running:
                status = "starting"
            else:
                status = "healthy" if self._index_available else "degraded"
            return {
                "status": status,
                "version": __version__,
                "components": {
                    "embeddings": self.embedding_manager is not None,
                    "vector_index": self._index_available,
                    "generative_model": self.generative_model is not None,
                    "sync_worker": self.worker is not None,
                    "reconciler": self.reconciler is not None and self.reconciler.is_running,
                }
            }

        @app.post("/ask")
        async def ask(request: AskRequest):
            """Answer a question from indexed community answers."""
            result = await self.orchestrator.answer(
                request.question,
                similarity_threshold=request.similarity_threshold,
                max_context_items=request.max_context_items,
            )
            return AskResponse.from_result(result).model_dump(mode="json", by_alias=True)

        @app.post("/questions/suggestions")
        async def suggest(question: Question):
            """Suggested answer for a newly posted question, or null."""
            result = await self.orchestrator.suggest_for_question(question)
            return {
                "questionId": question.id,
                "suggestion": (
                    AskResponse.from_result(result).model_dump(mode="json", by_alias=True)
                    if result else None
                ),
            }

        @app.post("/answers/events")
        async def answer_event(event: AnswerEvent):
            """Apply a committed answer write to the index.

            The sync runs as a worker task, so it still finishes (and is
            drained at shutdown) if the client disconnects mid-request.
            """
            outcome = await asyncio.shield(self.worker.submit(event))
            return outcome.model_dump(mode="json")

        @app.get("/sync/status")
        async def sync_status():
            """Pending index ops and indexed answer count."""
            pending = await self.outbox.pending_count()
            collection = self.settings.ANSWERS_COLLECTION
            indexed = 0
            if await self.vector_index.collection_exists(collection):
                indexed = await self.vector_index.count(collection)
            return {"pendingOps": pending, "indexedPoints": indexed}

        self.app = app
        return app

    async def start(self) -> None:
        """Start the server using uvicorn."""
        app = self.create_app()

        config = uvicorn.Config(
            app,
            host=self.settings.SERVER_HOST,
            port=self.settings.SERVER_PORT,
            log_level=self.settings.LOG_LEVEL.lower(),
            access_log=self.settings.DEBUG,
        )

        server = uvicorn.Server(config)
        await server.serve()

    @property
    def is_running(self) -> bool:
        """Check if the server is running."""
        return self._running
