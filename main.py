import logging
from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query
from sqlalchemy.orm import Session

from auth import AuthError, user_id_from_header
from database import SessionLocal
from models import SuggestionType
from scheduler import SchedulerManager
from schemas import (
    DismissalIn,
    DismissalOut,
    DismissedListOut,
    RecommendationsResponse,
)
from services import (
    DismissedSuggestionService,
    RecommendationService,
    UpstreamDataError,
)

logger = logging.getLogger(__name__)

MONTH_QUERY_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"

app = FastAPI(title="Budget Recommendations")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def current_user_id(authorization: Optional[str] = Header(default=None)) -> int:
    try:
        return user_id_from_header(authorization)
    except AuthError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc


scheduler_manager = SchedulerManager()


@app.on_event("startup")
def startup_event():
    scheduler_manager.start()


@app.on_event("shutdown")
def shutdown_event():
    scheduler_manager.stop()


@app.get("/api/budget-recommendations", response_model=RecommendationsResponse)
def budget_recommendations(
    month: Optional[str] = None,
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    # A malformed month falls back to the current month.
    try:
        return RecommendationService(db, user_id).build(month)
    except UpstreamDataError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@app.get("/api/dismissed-suggestions", response_model=DismissedListOut)
def list_dismissed(
    month: str = Query(..., pattern=MONTH_QUERY_PATTERN),
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    dismissed = DismissedSuggestionService(db, user_id).list_for_month(month)
    return DismissedListOut(dismissed=dismissed, count=len(dismissed))


@app.post("/api/dismissed-suggestions", response_model=DismissalOut)
def dismiss_suggestion(
    payload: DismissalIn,
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    try:
        dismissal = DismissedSuggestionService(db, user_id).dismiss(payload)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    logger.info(
        f"suggestion_dismissed: user_id={user_id} category_id={payload.category_id} "
        f"type={payload.suggestion_type.value} month={payload.month}"
    )
    return DismissalOut.model_validate(dismissal, from_attributes=True)


@app.delete("/api/dismissed-suggestions")
def undismiss_suggestion(
    category_id: int = Query(..., alias="categoryId"),
    suggestion_type: SuggestionType = Query(..., alias="suggestionType"),
    month: str = Query(..., pattern=MONTH_QUERY_PATTERN),
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    DismissedSuggestionService(db, user_id).undismiss(
        category_id, suggestion_type, month
    )
    return {"success": True}


def main():
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=False)


if __name__ == "__main__":
    main()
