import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.dependencies import get_ingestion_service
from app.limits import limiter
from app.models.ingest_request import IngestRequest
from app.models.ingest_response import IngestFailure, IngestSuccess
from app.services.ingestion import IngestionService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Ingestion"])


@router.post(
    "/ingest",
    response_model=IngestSuccess,
    responses={500: {"model": IngestFailure, "description": "Every extraction method failed"}},
    summary="Ingest a website into a knowledge-base namespace",
)
@limiter.limit("5/minute")
async def ingest(
    request: Request,
    body: IngestRequest,
    service: IngestionService = Depends(get_ingestion_service),
):
    """Crawl *url* and store its pages in *namespace*.

    The extraction method is chosen automatically:

    * every method (``plain``, ``api_docs``, ``browser``) is trial-run on the
      seed URL and graded by the classifier;
    * methods are then run at full depth in the recommended order until one
      produces content, which is chunked, embedded and stored.
    """
    url = str(body.url)
    outcome = await service.ingest(url, body.namespace, body.metadata, body.max_depth)

    if isinstance(outcome, IngestFailure):
        logger.error("Ingestion failed for %s: %s", url, outcome.error)
        return JSONResponse(status_code=500, content=outcome.model_dump(mode="json"))
    return outcome
