"""Retrieval-augmented answering over indexed community answers."""

import asyncio
from typing import List, Optional, Tuple

from ..config.logging import LoggerMixin
from ..config.settings import Settings
from ..core.exceptions import AnswerRAGError, EmbeddingError, ValidationError
from ..models.answers import Question
from ..models.rag import AnswerStatus, RAGAnswer, SearchHit
from ..utils.async_utils import Deadline, run_with_timeout
from ..utils.validation import parse_numeric_id
from .embeddings import EmbeddingManager
from .generation import GenerativeModel
from .index import VectorIndex

CONTEXT_HEADER = "Related answers from the knowledge base:"
NO_CONTEXT_SENTINEL = "No related answers were found in the knowledge base."
FALLBACK_ANSWER = "Sorry, I can't generate an answer right now. Please try again later."

ACTIVE_FILTER = {"is_active": True}


def has_answer_text(hit: SearchHit) -> bool:
    text = hit.payload.get("answer_text")
    return isinstance(text, str) and bool(text.strip())


def rank_candidates(
    hits: List[SearchHit],
    similarity_threshold: float,
    max_items: int,
) -> List[SearchHit]:
    """Threshold, order by score descending and truncate.

    Hits without answer text cannot become context and take no slot.
    ``sorted`` is stable, so equal scores keep the index's ranking order.
    """
    kept = [hit for hit in hits if hit.score >= similarity_threshold and has_answer_text(hit)]
    kept = sorted(kept, key=lambda hit: hit.score, reverse=True)
    return kept[:max_items]


def build_context(candidates: List[SearchHit]) -> str:
    """Concatenate candidate answer texts in ranked order."""
    lines = [f"- {hit.payload['answer_text']}" for hit in candidates if has_answer_text(hit)]
    if not lines:
        return NO_CONTEXT_SENTINEL
    return "\n".join([CONTEXT_HEADER, ""] + lines)


def related_question_id(hit: SearchHit) -> Optional[int]:
    """Question reference from a candidate: ``post_id`` first, then ``question_id``."""
    for key in ("post_id", "question_id"):
        parsed = parse_numeric_id(hit.payload.get(key))
        if parsed is not None:
            return parsed
    return None


def collect_related_question_ids(candidates: List[SearchHit]) -> List[int]:
    """Deduplicated question ids; unparseable candidates are skipped."""
    seen: List[int] = []
    for hit in candidates:
        question_id = related_question_id(hit)
        if question_id is not None and question_id not in seen:
            seen.append(question_id)
    return seen


class RAGOrchestrator(LoggerMixin):
    """Sequential pipeline: embed, search, rank, build context, generate.

    Only the embedding step is load-bearing. An unavailable index yields an
    empty context and a failed generation yields the fallback answer, so a
    valid question always gets a response unless it cannot be embedded.
    """

    def __init__(
        self,
        settings: Settings,
        embedding_manager: EmbeddingManager,
        vector_index: VectorIndex,
        generative_model: GenerativeModel,
    ):
        self.settings = settings
        self.embedding_manager = embedding_manager
        self.vector_index = vector_index
        self.generative_model = generative_model

    def _resolve_limits(
        self,
        similarity_threshold: Optional[float],
        max_context_items: Optional[int],
    ) -> Tuple[float, int]:
        threshold = (
            self.settings.RAG_SIMILARITY_THRESHOLD
            if similarity_threshold is None
            else similarity_threshold
        )
        max_items = (
            self.settings.RAG_MAX_CONTEXT_ITEMS
            if max_context_items is None
            else max_context_items
        )
        if not 0.0 <= threshold <= 1.0:
            raise ValidationError("Similarity threshold must be between 0 and 1", "similarityThreshold")
        if max_items < 1:
            raise ValidationError("maxContextItems must be at least 1", "maxContextItems")
        return threshold, max_items

    async def answer(
        self,
        question: str,
        similarity_threshold: Optional[float] = None,
        max_context_items: Optional[int] = None,
    ) -> RAGAnswer:
        """Answer a question from the indexed community answers."""
        question = (question or "").strip()
        if not question:
            raise ValidationError("Question cannot be empty", "question")
        threshold, max_items = self._resolve_limits(similarity_threshold, max_context_items)

        deadline = Deadline(self.settings.RAG_REQUEST_DEADLINE_SECONDS)
        per_call = self.settings.EXTERNAL_CALL_TIMEOUT_SECONDS

        query_vector = await self._embed_question(question, deadline.budget(per_call))

        candidates, index_degraded = await self._retrieve(
            query_vector, threshold, max_items, deadline.budget(per_call)
        )
        context = build_context(candidates)
        related_ids = collect_related_question_ids(candidates)

        answer_text, status = await self._generate(question, context, deadline.budget(per_call))

        self.logger.info(
            "Question answered",
            question=question[:100] + "..." if len(question) > 100 else question,
            context_items=len(candidates),
            related_questions=len(related_ids),
            status=status.value,
            index_degraded=index_degraded,
        )

        return RAGAnswer(
            answer=answer_text,
            related_question_ids=related_ids,
            context_items_used=len(candidates),
            status=status,
            index_degraded=index_degraded,
        )

    async def _embed_question(self, question: str, timeout: float) -> List[float]:
        try:
            return await run_with_timeout(self.embedding_manager.embed_text(question), timeout)
        except asyncio.TimeoutError:
            self.logger.error("Question embedding timed out", timeout=timeout)
            raise EmbeddingError(f"Question embedding timed out after {timeout:.1f}s")
        except EmbeddingError as e:
            self.logger.error("Failed to embed question", error=str(e))
            raise
        except Exception as e:
            self.logger.error("Failed to embed question", error=str(e))
            raise EmbeddingError(f"Failed to embed question: {e}")

    async def _retrieve(
        self,
        query_vector: List[float],
        threshold: float,
        max_items: int,
        timeout: float,
    ) -> Tuple[List[SearchHit], bool]:
        # Over-fetch because the index cannot apply the score threshold itself
        limit = max_items * self.settings.RAG_OVERFETCH_FACTOR
        try:
            hits = await run_with_timeout(
                self.vector_index.search(
                    self.settings.ANSWERS_COLLECTION,
                    query_vector,
                    limit,
                    dict(ACTIVE_FILTER),
                ),
                timeout,
            )
        except asyncio.TimeoutError:
            self.logger.warning("Answer search timed out, continuing without context", timeout=timeout)
            return [], True
        except Exception as e:
            self.logger.warning("Answer search failed, continuing without context", error=str(e))
            return [], True

        return rank_candidates(hits, threshold, max_items), False

    async def _generate(self, question: str, context: str, timeout: float) -> Tuple[str, AnswerStatus]:
        try:
            text = await run_with_timeout(self.generative_model.generate(question, context), timeout)
        except asyncio.TimeoutError:
            self.logger.warning("Answer generation timed out, using fallback", timeout=timeout)
            return FALLBACK_ANSWER, AnswerStatus.FALLBACK
        except Exception as e:
            self.logger.warning("Answer generation failed, using fallback", error=str(e))
            return FALLBACK_ANSWER, AnswerStatus.FALLBACK

        if not text or not text.strip():
            self.logger.warning("Model returned an empty answer, using fallback")
            return FALLBACK_ANSWER, AnswerStatus.FALLBACK
        return text, AnswerStatus.GENERATED

    async def suggest_for_question(self, question: Question) -> Optional[RAGAnswer]:
        """Suggested answer for a newly posted question.

        Posting a question never depends on this: any failure, including a
        fallback answer, means no suggestion.
        """
        try:
            result = await self.answer(question.text)
        except AnswerRAGError as e:
            self.logger.warning("No suggestion for question", question_id=question.id, error=str(e))
            return None

        if result.is_fallback:
            self.logger.info("Suggestion skipped, model unavailable", question_id=question.id)
            return None
        return result
