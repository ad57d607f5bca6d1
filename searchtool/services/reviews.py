import math
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, localcontext
from types import MappingProxyType
from typing import Any, Iterable, NamedTuple, Optional


class RubricQuestion(NamedTuple):
    id: str
    label: str
    weight: float


class Rubric:
    """Fixed, weighted question set used to score a consultant review.

    Built once at startup and passed into both the submission validator and
    the aggregator, so tests can swap in a different rubric.
    """

    def __init__(self, questions: Iterable[RubricQuestion], version: str = "1"):
        questions = tuple(questions)
        if not questions:
            raise ValueError("Rubric needs at least one question")
        for q in questions:
            if not (isinstance(q.weight, (int, float)) and q.weight > 0):
                raise ValueError(f"Weight for '{q.id}' must be positive")
        self.version = version
        self.questions = questions
        self.weights = MappingProxyType({q.id: float(q.weight) for q in questions})

    def __contains__(self, question_id) -> bool:
        return question_id in self.weights

    def __repr__(self) -> str:
        return f"<Rubric v{self.version} questions={len(self.questions)}>"


DEFAULT_RUBRIC = Rubric(
    [
        RubricQuestion("technical_expertise", "Technical Expertise", 0.25),
        RubricQuestion("relevant_experience", "Relevant Experience", 0.15),
        RubricQuestion("proposed_methodology", "Proposed Methodology", 0.15),
        RubricQuestion("communication_skills", "Communication Skills", 0.10),
        RubricQuestion("involvement_tasks", "Involvement in the Tasks", 0.15),
        RubricQuestion("timeliness", "Timeliness", 0.10),
        RubricQuestion("cost_effectiveness", "Cost Effectiveness", 0.10),
    ],
    version="2025.1",
)

ANSWER_MIN = 1
ANSWER_MAX = 5


@dataclass(frozen=True)
class RatingAggregate:
    avg: float
    count: int


class ReviewValidationError(ValueError):
    """Raised when a review submission is rejected as a whole."""

    def __init__(self, errors: dict):
        self.errors = dict(errors)
        super().__init__("; ".join(f"{k}: {v}" for k, v in self.errors.items()))


def _field(review: Any, *names: str) -> Any:
    # ORM rows and plain dicts (legacy documents) are both accepted
    for name in names:
        if isinstance(review, Mapping):
            value = review.get(name)
        else:
            value = getattr(review, name, None)
        if value is not None:
            return value
    return None


def _positive_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        value = float(value)
    except OverflowError:
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return value


def compute_review_score(review: Any, rubric: Rubric = DEFAULT_RUBRIC) -> float:
    """Overall 0–5 score for one review.

    Structured answers win; the weighted average is re-normalised over the
    questions actually answered. Otherwise the cached overall rating, then
    the legacy scalar rating, then 0.
    """
    if review is None:
        return 0.0

    answers = _field(review, "answers")
    if isinstance(answers, Mapping) and answers:
        total = 0.0
        total_weight = 0.0
        for question_id, weight in rubric.weights.items():
            value = _positive_number(answers.get(question_id))
            if value is None:
                continue
            total += value * weight
            total_weight += weight
        # overflowed sums count as no usable answers
        if total_weight > 0 and math.isfinite(total / total_weight):
            return total / total_weight

    overall = _positive_number(_field(review, "overall_rating", "overallRating"))
    if overall is not None:
        return overall

    rating = _positive_number(_field(review, "rating"))
    if rating is not None:
        return rating

    return 0.0


def round_rating(value: float) -> float:
    """Round to one decimal, half-up on the decimal form (2.25 -> 2.3)."""
    if not math.isfinite(value):
        return 0.0
    exact = Decimal(str(value))
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, exact.adjusted() + 3)
        return float(exact.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def recompute_aggregate(reviews: Iterable[Any], rubric: Rubric = DEFAULT_RUBRIC) -> RatingAggregate:
    reviews = list(reviews or [])
    count = len(reviews)
    if not count:
        return RatingAggregate(avg=0.0, count=0)

    total = sum(compute_review_score(r, rubric) for r in reviews)
    if not math.isfinite(total):
        return RatingAggregate(avg=0.0, count=count)
    return RatingAggregate(avg=round_rating(total / count), count=count)


def validate_answers(answers: Mapping, rubric: Rubric = DEFAULT_RUBRIC) -> dict:
    """Check a structured submission; all-or-nothing.

    Returns the cleaned ``{question_id: int}`` mapping or raises
    ReviewValidationError naming every offending question.
    """
    errors = {}
    cleaned = {}
    for question_id, value in answers.items():
        if question_id not in rubric:
            errors[question_id] = "unknown question"
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            errors[question_id] = f"answer must be an integer between {ANSWER_MIN} and {ANSWER_MAX}"
            continue
        if isinstance(value, float) and not value.is_integer():
            errors[question_id] = f"answer must be an integer between {ANSWER_MIN} and {ANSWER_MAX}"
            continue
        if not ANSWER_MIN <= value <= ANSWER_MAX:
            errors[question_id] = f"answer {value} is outside {ANSWER_MIN}-{ANSWER_MAX}"
            continue
        cleaned[question_id] = int(value)

    if errors:
        raise ReviewValidationError(errors)
    return cleaned


def validate_legacy_rating(rating: Any) -> int:
    if isinstance(rating, bool) or not isinstance(rating, (int, float)) or (
        isinstance(rating, float) and not rating.is_integer()
    ):
        raise ReviewValidationError({"rating": f"must be an integer between {ANSWER_MIN} and {ANSWER_MAX}"})
    if not ANSWER_MIN <= rating <= ANSWER_MAX:
        raise ReviewValidationError({"rating": f"rating {rating} is outside {ANSWER_MIN}-{ANSWER_MAX}"})
    return int(rating)


def apply_aggregate(consultant: Any, rubric: Rubric = DEFAULT_RUBRIC) -> RatingAggregate:
    """Replace the consultant's cached rating fields from its current reviews."""
    aggregate = recompute_aggregate(consultant.reviews, rubric)
    consultant.rating_avg = aggregate.avg
    consultant.rating_count = aggregate.count
    return aggregate


def get_rubric() -> Rubric:
    """FastAPI dependency; override in tests to score against another rubric."""
    return DEFAULT_RUBRIC
