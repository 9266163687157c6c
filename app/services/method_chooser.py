"""Trial-run every extraction method against a URL and let the classifier rank them."""

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional

from app.models.method import ExtractionMethod, MethodChoice, MethodGrade, TrialOutcome
from app.services.classifier import Classifier
from app.services.crawler import VisitedSet
from app.services.errors import ClassifierError
from app.services.extraction import ExtractionStrategy
from app.services.prompts import build_grading_prompt

logger = logging.getLogger(__name__)

DEFAULT_ORDER = (ExtractionMethod.PLAIN, ExtractionMethod.BROWSER, ExtractionMethod.API_DOCS)

GRADES = ("A", "B", "C", "D", "E")
DEFAULT_GRADE = "C"

# Trials crawl the seed page plus a couple of its links
TRIAL_MAX_DEPTH = 1


def _parse_method(value: Any) -> Optional[ExtractionMethod]:
    try:
        return ExtractionMethod(str(value).strip().lower())
    except ValueError:
        return None


def validate_order(raw_order: Any) -> List[ExtractionMethod]:
    """Return *raw_order* as methods if it is a permutation of all methods, else the default."""
    if isinstance(raw_order, list):
        order = [_parse_method(value) for value in raw_order]
        if None not in order and len(order) == len(ExtractionMethod) and set(order) == set(ExtractionMethod):
            return order
    logger.warning("Method chooser: invalid order %r, using default", raw_order)
    return list(DEFAULT_ORDER)


def clamp_grade(raw_grade: Any) -> str:
    """Map a classifier grade onto A–E; letters past E count as E."""
    letter = str(raw_grade or "").strip().upper()[:1]
    if letter in GRADES:
        return letter
    if "F" <= letter <= "Z":
        return "E"
    return DEFAULT_GRADE


def parse_grades(raw_grades: Any) -> Dict[ExtractionMethod, MethodGrade]:
    grades: Dict[ExtractionMethod, MethodGrade] = {}
    if isinstance(raw_grades, dict):
        for key, value in raw_grades.items():
            method = _parse_method(key)
            if method is None:
                continue
            if isinstance(value, dict):
                grade, explanation = value.get("grade"), value.get("explanation")
            else:
                grade, explanation = value, None
            grades[method] = MethodGrade(
                method=method,
                grade=clamp_grade(grade),
                explanation=str(explanation or ""),
            )

    for method in ExtractionMethod:
        grades.setdefault(
            method,
            MethodGrade(
                method=method,
                grade=DEFAULT_GRADE,
                explanation="No grade returned by classifier",
            ),
        )
    return grades


class MethodChooser:
    def __init__(self, strategies: Mapping[ExtractionMethod, ExtractionStrategy], classifier: Classifier):
        self.strategies = strategies
        self.classifier = classifier

    async def _trial(self, method: ExtractionMethod, url: str, cancel_event: Optional[asyncio.Event]) -> TrialOutcome:
        strategy = self.strategies[method]
        try:
            result = await strategy.process(
                url, url, TRIAL_MAX_DEPTH, 0, VisitedSet(), True, cancel_event=cancel_event
            )
        except Exception as exc:
            logger.warning("Method chooser: %s trial raised for %s – %s", method.value, url, exc, exc_info=True)
            return TrialOutcome(method=method, success=False, error=str(exc) or exc.__class__.__name__)

        return TrialOutcome(
            method=method,
            success=result.success,
            error=result.error,
            pages=len(result.texts),
            diagnostics=result.diagnostics,
        )

    async def run_trials(self, url: str, cancel_event: Optional[asyncio.Event] = None) -> List[TrialOutcome]:
        """Run every registered strategy in testing mode, concurrently."""
        return list(
            await asyncio.gather(*(self._trial(method, url, cancel_event) for method in self.strategies))
        )

    async def choose(self, url: str, cancel_event: Optional[asyncio.Event] = None) -> MethodChoice:
        """Return the preferred method order for *url* with a grade per method.

        If the classifier fails or answers with an invalid ordering, the
        default order is used; grades are always clamped to A–E.
        """
        trials = await self.run_trials(url, cancel_event)
        errors = [f"{trial.method.value}: {trial.error}" for trial in trials if not trial.success]

        try:
            response = await self.classifier.rank(build_grading_prompt(url, trials))
        except ClassifierError as exc:
            logger.warning("Method chooser: classifier failed for %s – %s", url, exc)
            response = {}

        order = validate_order(response.get("order"))
        grades = parse_grades(response.get("grades"))

        logger.info(
            "Method chooser: order for %s is %s",
            url,
            ", ".join(method.value for method in order),
        )
        return MethodChoice(order=order, grades=grades, errors=errors, trials=trials)
