# searchtool/routers/reviews.py
from fastapi import APIRouter, Depends

from searchtool.schemas.review import RubricResponse, RubricQuestionResponse
from searchtool.services.reviews import Rubric, get_rubric, ANSWER_MIN, ANSWER_MAX

router = APIRouter(prefix="/api/reviews", tags=["reviews"])


@router.get("/rubric", response_model=RubricResponse)
async def read_rubric(rubric: Rubric = Depends(get_rubric)):
    """Questions and weights the review form should render."""
    return RubricResponse(
        version=rubric.version,
        min_answer=ANSWER_MIN,
        max_answer=ANSWER_MAX,
        questions=[
            RubricQuestionResponse(id=q.id, label=q.label, weight=q.weight)
            for q in rubric.questions
        ],
    )
