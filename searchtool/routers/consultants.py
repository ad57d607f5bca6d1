# searchtool/routers/consultants.py
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, UploadFile, File, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from searchtool.database import get_db
from searchtool.core.auth import get_current_admin, require_roles, require_permission
from searchtool.models.consultant import Consultant, Review
from searchtool.schemas.consultant import (
    ConsultantCreate, ConsultantUpdate, ConsultantResponse,
    ExperienceItem, ExperienceUpdate, UploadResponse
)
from searchtool.schemas.review import ReviewCreate, ReviewResponse
from searchtool.services.reviews import (
    Rubric, ReviewValidationError, get_rubric,
    compute_review_score, apply_aggregate, validate_answers, validate_legacy_rating
)
from searchtool.services.search import (
    SORT_OPTIONS, apply_search_index, clean_associations, flatten_contacts,
    matches_filters, sort_consultants
)
from searchtool.services.storage import (
    PHOTO_TYPES, CV_TYPES, UploadRejected, save_upload, public_url
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/consultants", tags=["consultants"])


def consultant_query(consultant_id: int, lock: bool = False):
    stmt = (
        select(Consultant)
        .where(Consultant.id == consultant_id)
        .execution_options(populate_existing=True)
    )
    if lock:
        # review writers serialise on the consultant row until commit
        stmt = stmt.with_for_update()
    return stmt


async def _get_consultant_or_404(db: AsyncSession, consultant_id: int, lock: bool = False) -> Consultant:
    result = await db.execute(consultant_query(consultant_id, lock))
    consultant = result.scalar_one_or_none()
    if not consultant:
        raise HTTPException(404, "Consultant not found")
    return consultant


def _check_index(consultant: Consultant, idx: int) -> None:
    if not consultant.experience or idx < 0 or idx >= len(consultant.experience):
        raise HTTPException(400, "Bad index")


@router.post("", response_model=ConsultantResponse, status_code=status.HTTP_201_CREATED)
async def create_consultant(
    consultant_in: ConsultantCreate,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(require_roles("admin", "editor"))
):
    payload = flatten_contacts(consultant_in.model_dump(mode="json"))
    payload["associations"] = clean_associations(payload.get("associations"))

    consultant = Consultant(**payload)
    apply_search_index(consultant)
    db.add(consultant)
    await db.commit()
    logger.info("Consultant %s created by user %s", consultant.id, current_user.id)
    return await _get_consultant_or_404(db, consultant.id)


@router.get("", response_model=List[ConsultantResponse])
async def list_consultants(
    q: Optional[str] = None,
    exp: Optional[str] = None,
    expertise: Optional[str] = None,
    qual: Optional[str] = None,
    min_rating: Optional[float] = Query(None, ge=0, le=5),
    sort: str = Query("name-asc", pattern="^(" + "|".join(SORT_OPTIONS) + ")$"),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(select(Consultant).order_by(Consultant.name))
    consultants = [
        c for c in result.scalars().all()
        if matches_filters(c, q=q, exp=exp, expertise=expertise, qual=qual, min_rating=min_rating)
    ]
    return sort_consultants(consultants, sort)


@router.get("/{consultant_id}", response_model=ConsultantResponse)
async def get_consultant(consultant_id: int, db: AsyncSession = Depends(get_db)):
    return await _get_consultant_or_404(db, consultant_id)


@router.put("/{consultant_id}", response_model=ConsultantResponse)
async def update_consultant(
    consultant_id: int,
    consultant_in: ConsultantUpdate,
    db: AsyncSession = Depends(get_db),
    admin = Depends(get_current_admin)
):
    consultant = await _get_consultant_or_404(db, consultant_id)
    payload = flatten_contacts(consultant_in.model_dump(mode="json", exclude_unset=True))

    if "associations" in payload:
        payload["associations"] = clean_associations(payload["associations"])

    # Never clobber an uploaded CV (or photo) with an absent value
    if "media" in payload:
        incoming = {k: v for k, v in (payload["media"] or {}).items() if v is not None}
        payload["media"] = {**(consultant.media or {}), **incoming} or None

    for field, value in payload.items():
        if value is None and field == "name":
            continue
        setattr(consultant, field, value)

    apply_search_index(consultant)
    await db.commit()
    return await _get_consultant_or_404(db, consultant_id)


@router.delete("/{consultant_id}")
async def delete_consultant(
    consultant_id: int,
    db: AsyncSession = Depends(get_db),
    admin = Depends(get_current_admin)
):
    consultant = await _get_consultant_or_404(db, consultant_id)
    await db.delete(consultant)
    await db.commit()
    logger.info("Consultant %s deleted by admin %s", consultant_id, admin.id)
    return {"ok": True}


# ---------- uploads ----------

@router.post("/{consultant_id}/photo", response_model=UploadResponse)
async def upload_photo(
    consultant_id: int,
    request: Request,
    photo: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    current_user = Depends(require_roles())
):
    consultant = await _get_consultant_or_404(db, consultant_id)
    try:
        stored = await save_upload(photo, "photos", PHOTO_TYPES)
    except UploadRejected:
        raise HTTPException(400, "Only JPG/PNG/WEBP allowed")

    url = public_url(request.base_url, "photos", stored["filename"])
    consultant.img = url
    consultant.media = {**(consultant.media or {}), "photo": url}
    await db.commit()
    return UploadResponse(
        message="Photo uploaded",
        url=url,
        consultant=ConsultantResponse.model_validate(await _get_consultant_or_404(db, consultant_id)),
    )


@router.post("/{consultant_id}/cv", response_model=UploadResponse)
async def upload_cv(
    consultant_id: int,
    request: Request,
    cv: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    current_user = Depends(require_roles())
):
    consultant = await _get_consultant_or_404(db, consultant_id)
    try:
        stored = await save_upload(cv, "cv", CV_TYPES)
    except UploadRejected:
        raise HTTPException(400, "Only PDF files allowed")

    url = public_url(request.base_url, "cv", stored["filename"])
    consultant.media = {
        **(consultant.media or {}),
        "cv": {
            "url": url,
            "filename": stored["filename"],
            "mime": stored["mime"],
            "size": stored["size"],
        },
    }
    await db.commit()
    return UploadResponse(
        message="CV uploaded",
        url=url,
        consultant=ConsultantResponse.model_validate(await _get_consultant_or_404(db, consultant_id)),
    )


# ---------- experience ----------

@router.post("/{consultant_id}/experience", response_model=ConsultantResponse)
async def add_experience(
    consultant_id: int,
    item_in: ExperienceItem,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(require_permission("can_edit_experience"))
):
    consultant = await _get_consultant_or_404(db, consultant_id)
    consultant.experience = [*(consultant.experience or []), item_in.model_dump(mode="json")]
    apply_search_index(consultant)
    await db.commit()
    return await _get_consultant_or_404(db, consultant_id)


@router.put("/{consultant_id}/experience/{idx}", response_model=ConsultantResponse)
async def edit_experience(
    consultant_id: int,
    idx: int,
    item_in: ExperienceUpdate,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(require_permission("can_edit_experience"))
):
    consultant = await _get_consultant_or_404(db, consultant_id)
    _check_index(consultant, idx)

    experience = list(consultant.experience)
    experience[idx] = {**experience[idx], **item_in.model_dump(mode="json", exclude_unset=True)}
    consultant.experience = experience
    apply_search_index(consultant)
    await db.commit()
    return await _get_consultant_or_404(db, consultant_id)


@router.delete("/{consultant_id}/experience/{idx}", response_model=ConsultantResponse)
async def delete_experience(
    consultant_id: int,
    idx: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(require_permission("can_edit_experience"))
):
    consultant = await _get_consultant_or_404(db, consultant_id)
    _check_index(consultant, idx)

    experience = list(consultant.experience)
    experience.pop(idx)
    consultant.experience = experience
    apply_search_index(consultant)
    await db.commit()
    return await _get_consultant_or_404(db, consultant_id)


# ---------- reviews ----------

@router.get("/{consultant_id}/reviews", response_model=List[ReviewResponse])
async def list_reviews(consultant_id: int, db: AsyncSession = Depends(get_db)):
    consultant = await _get_consultant_or_404(db, consultant_id)
    return consultant.reviews


@router.post("/{consultant_id}/reviews", response_model=ConsultantResponse, status_code=status.HTTP_201_CREATED)
async def add_review(
    consultant_id: int,
    review_in: ReviewCreate,
    db: AsyncSession = Depends(get_db),
    rubric: Rubric = Depends(get_rubric),
    current_user = Depends(require_permission("can_add_review"))
):
    consultant = await _get_consultant_or_404(db, consultant_id, lock=True)

    # Validate the whole submission before a Review exists
    try:
        answers = validate_answers(review_in.answers, rubric) if review_in.answers else None
        rating = validate_legacy_rating(review_in.rating) if review_in.rating is not None else None
    except ReviewValidationError as e:
        logger.warning("Rejected review for consultant %s: %s", consultant_id, e)
        raise HTTPException(400, str(e))
    if not answers and rating is None:
        raise HTTPException(400, "Provide rubric answers or a rating")

    review = Review(
        user_id=current_user.id,
        user_name=current_user.name or current_user.email,
        answers=answers,
        rating=rating,
        comment=review_in.comment or "",
        note=review_in.note,
        project_name=review_in.project_name,
        project_date=review_in.project_date,
    )
    review.overall_rating = compute_review_score(review, rubric)
    consultant.reviews.append(review)

    aggregate = apply_aggregate(consultant, rubric)
    await db.commit()
    logger.info(
        "Review added to consultant %s by user %s: avg=%.1f count=%d",
        consultant_id, current_user.id, aggregate.avg, aggregate.count,
    )
    return await _get_consultant_or_404(db, consultant_id)


@router.delete("/{consultant_id}/reviews/{review_id}", response_model=ConsultantResponse)
async def delete_review(
    consultant_id: int,
    review_id: int,
    db: AsyncSession = Depends(get_db),
    rubric: Rubric = Depends(get_rubric),
    admin = Depends(get_current_admin)
):
    consultant = await _get_consultant_or_404(db, consultant_id, lock=True)
    review = next((r for r in consultant.reviews if r.id == review_id), None)
    if review is None:
        raise HTTPException(404, "Review not found")

    consultant.reviews.remove(review)
    aggregate = apply_aggregate(consultant, rubric)
    await db.commit()
    logger.info(
        "Review %s removed from consultant %s: avg=%.1f count=%d",
        review_id, consultant_id, aggregate.avg, aggregate.count,
    )
    return await _get_consultant_or_404(db, consultant_id)
