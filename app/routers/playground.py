import logging

from fastapi import APIRouter, Depends, Request

from app.dependencies import get_method_chooser, get_strategies
from app.limits import limiter
from app.models.method import MethodChoice
from app.models.playground_request import MethodChooserRequest, TrialRequest
from app.models.scraping import ScrapingResult
from app.services.crawler import VisitedSet
from app.services.extraction import StrategyRegistry
from app.services.method_chooser import MethodChooser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/playground", tags=["Playground"])


@router.post(
    "/method-chooser",
    response_model=MethodChoice,
    summary="Grade every extraction method for a URL (Playground)",
    description=(
        "Trial-runs the plain, API-docs and browser methods on the URL and "
        "returns the classifier's preferred order with a grade per method. "
        "Nothing is stored."
    ),
)
@limiter.limit("5/minute")
async def method_chooser(
    request: Request,
    body: MethodChooserRequest,
    chooser: MethodChooser = Depends(get_method_chooser),
) -> MethodChoice:
    url = str(body.url)
    logger.info("Playground method-chooser request", extra={"url": url})
    return await chooser.choose(url)


@router.post(
    "/trial",
    response_model=ScrapingResult,
    summary="Trial-run one extraction method (Playground)",
    description=(
        "Runs a single extraction method in testing mode and returns the best "
        "text sample with its diagnostics. Nothing is stored.\n\n"
        "**Note:** the `browser` method is slower because it starts a real browser."
    ),
)
@limiter.limit("5/minute")
async def trial(
    request: Request,
    body: TrialRequest,
    strategies: StrategyRegistry = Depends(get_strategies),
) -> ScrapingResult:
    url = str(body.url)
    logger.info("Playground trial request", extra={"url": url, "method": body.method.value})
    strategy = strategies[body.method]
    return await strategy.process(url, url, body.max_depth, 0, VisitedSet(), True)
