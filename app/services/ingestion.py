"""Ingestion orchestration: choose an extraction method, crawl, persist.

Methods are tried in the order proposed by the :class:`MethodChooser`; the
first one that succeeds with at least one text wins and its pages are stored.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Union

from app.models.ingest_response import IngestFailure, IngestSuccess
from app.models.method import ExtractionMethod, MethodChoice
from app.models.scraping import ScrapingResult
from app.services.crawler import DEFAULT_MAX_DEPTH, VisitedSet
from app.services.extraction import StrategyRegistry
from app.services.knowledge_store import ChunkedStore
from app.services.method_chooser import MethodChooser

logger = logging.getLogger(__name__)

IngestOutcome = Union[IngestSuccess, IngestFailure]


class IngestionService:
    def __init__(self, chooser: MethodChooser, strategies: StrategyRegistry, store: ChunkedStore):
        self.chooser = chooser
        self.strategies = strategies
        self.store = store

    async def _run(
        self,
        method: ExtractionMethod,
        url: str,
        max_depth: int,
        cancel_event: Optional[asyncio.Event],
    ) -> ScrapingResult:
        strategy = self.strategies[method]
        try:
            return await strategy.process(url, url, max_depth, 0, VisitedSet(), False, cancel_event=cancel_event)
        except Exception as exc:
            logger.warning("Ingest: %s raised for %s – %s", method.value, url, exc, exc_info=True)
            return ScrapingResult.failure(url, str(exc) or exc.__class__.__name__)

    async def _persist(
        self,
        result: ScrapingResult,
        method: ExtractionMethod,
        choice: MethodChoice,
        seed_url: str,
        namespace: str,
        caller_metadata: Dict[str, Any],
        document_ids: List[str],
    ) -> None:
        """Store every non-blank page, appending each new document id to *document_ids*."""
        grade = choice.grades[method]
        for text, source in zip(result.texts, result.source_urls):
            if not text.strip():
                continue
            metadata = {
                **caller_metadata,
                "source": source,
                "group_id": seed_url,
                "type": "url",
                "implementation": method.value,
                "grade": grade.grade,
                "grade_explanation": grade.explanation,
                "is_multi_page": len(result.texts) > 1,
                "total_pages": len(result.texts),
            }
            document_ids.extend(await self.store.store([text], metadata, namespace))

    async def _rollback(self, document_ids: List[str], namespace: str) -> None:
        if not document_ids:
            return
        try:
            deleted = await self.store.delete_by_document_id(document_ids, namespace)
        except Exception:
            logger.exception("Ingest: could not roll back %d documents in %s", len(document_ids), namespace)
            return
        logger.info("Ingest: rolled back %d records in %s", deleted, namespace)

    async def ingest(
        self,
        seed_url: str,
        namespace: str,
        caller_metadata: Optional[Dict[str, Any]] = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> IngestOutcome:
        """Extract *seed_url* with the best available method and store the pages in *namespace*."""
        caller_metadata = caller_metadata or {}
        logger.info("Ingest request", extra={"url": seed_url, "namespace": namespace, "max_depth": max_depth})

        choice = await self.chooser.choose(seed_url, cancel_event)
        errors = list(choice.errors)
        last_error = "no method was attempted"

        for method in choice.order:
            if cancel_event is not None and cancel_event.is_set():
                last_error = "cancelled"
                break

            result = await self._run(method, seed_url, max_depth, cancel_event)
            if result.success and result.texts:
                document_ids: List[str] = []
                try:
                    await self._persist(result, method, choice, seed_url, namespace, caller_metadata, document_ids)
                except Exception as exc:
                    last_error = f"Storage failed: {exc}"
                    errors.append(f"{method.value}: {last_error}")
                    logger.error("Ingest: storing %s pages for %s failed – %s", method.value, seed_url, exc)
                    await self._rollback(document_ids, namespace)
                    continue

                grade = choice.grades[method]
                logger.info(
                    "Ingest: %s extracted %d pages from %s", method.value, len(result.texts), seed_url
                )
                return IngestSuccess(
                    implementation_used=method,
                    pages_processed=len(result.texts),
                    document_id=result.document_id,
                    group_id=seed_url,
                    document_ids=document_ids,
                    grade=grade.grade,
                    grade_explanation=grade.explanation,
                    all_method_grades=choice.grades,
                )

            last_error = result.error or "no content extracted"
            errors.append(f"{method.value}: {last_error}")
            logger.warning("Ingest: %s failed for %s – %s", method.value, seed_url, last_error)

        return IngestFailure(
            error=f"All implementations failed. Last error: {last_error}",
            method_grades=choice.grades,
            implementation_errors=errors,
        )
