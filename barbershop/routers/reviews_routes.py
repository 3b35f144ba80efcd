# barbershop/routers/reviews_routes.py

from fastapi import APIRouter, Depends
from sqlmodel import Session

from barbershop import catalog
from barbershop.auth import get_current_user
from barbershop.db import get_session
from barbershop.schemas import ReviewCreate, ReviewPublic

router = APIRouter(
    prefix="/reviews",
    tags=["reviews"],
)


@router.post("", response_model=ReviewPublic, status_code=201)
def add_review(
    review: ReviewCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return catalog.add_review(
        session,
        barber_id=review.barber_id,
        client_id=review.client_id,
        rating=review.rating,
        feedback=review.feedback,
        appointment_id=review.appointment_id,
    )
