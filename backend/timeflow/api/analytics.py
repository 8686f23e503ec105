"""Workforce integrity analytics API.

- POST /detect-anomalies   scan a company's last 30 days, notify owners/admins
- POST /employee-insights  performance summary for one employee
- GET  /anomalies/{id}     read-only anomaly list (no notifications written)

Errors come back as {"error": ...} bodies with the status of the failure:
400 for missing identifiers or too little data, 500 for read failures.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from timeflow.core.database import get_db
from timeflow.core.exceptions import AnalyticsError
from timeflow.services.anomaly_detection import COMPANY_ID_REQUIRED, find_anomalies, run_anomaly_detection
from timeflow.services.event_repository import EventRepository
from timeflow.services.insights import IDS_REQUIRED, generate_employee_insight
from timeflow.services.notifications import NotificationDispatcher

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/analytics", tags=["analytics"])

# Bodies that fail to parse get the same 400 as a missing identifier
INVALID_BODY_ERRORS = {
    f"{router.prefix}/detect-anomalies": COMPANY_ID_REQUIRED,
    f"{router.prefix}/employee-insights": IDS_REQUIRED,
}


# ── Schemas ──────────────────────────────────────────────────────────

class AnomalyDetectionRequest(BaseModel):
    company_id: Optional[str] = None


class EmployeeInsightsRequest(BaseModel):
    employee_id: Optional[str] = None
    company_id: Optional[str] = None


def _error_response(e: AnalyticsError) -> JSONResponse:
    return JSONResponse(status_code=e.status_code, content=e.payload())


# ── Anomaly Detection ────────────────────────────────────────────────

@router.post("/detect-anomalies")
def detect_anomalies(
    payload: Optional[AnomalyDetectionRequest] = None,
    db: Session = Depends(get_db),
):
    """Run anomaly detection for a company and notify its owners/admins."""
    company_id = payload.company_id if payload else None
    try:
        result = run_anomaly_detection(EventRepository(db), NotificationDispatcher(db), company_id)
        return result.summary()
    except AnalyticsError as e:
        return _error_response(e)
    except Exception as e:
        logger.error(f"ANOMALY DETECTION CRASH: {type(e).__name__}: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": str(e) or type(e).__name__})


@router.get("/anomalies/{company_id}")
def list_anomalies(company_id: str, db: Session = Depends(get_db)):
    """Current anomalies for a company, without creating notifications."""
    try:
        anomalies = find_anomalies(EventRepository(db), company_id)
    except AnalyticsError as e:
        return _error_response(e)
    return {
        "company_id": company_id,
        "count": len(anomalies),
        "anomalies": [a.to_dict() for a in anomalies],
    }


# ── Employee Insights ────────────────────────────────────────────────

@router.post("/employee-insights")
def employee_insights(
    payload: Optional[EmployeeInsightsRequest] = None,
    db: Session = Depends(get_db),
):
    """Punctuality, hour compliance, adherence and trend for one employee."""
    employee_id = payload.employee_id if payload else None
    company_id = payload.company_id if payload else None
    try:
        insight = generate_employee_insight(EventRepository(db), company_id, employee_id)
        return insight.to_dict()
    except AnalyticsError as e:
        if e.status_code >= 500:
            return JSONResponse(
                status_code=e.status_code,
                content={"error": e.error, "message": "Error generating employee insights"},
            )
        return _error_response(e)
    except Exception as e:
        logger.error(f"EMPLOYEE INSIGHTS CRASH: {type(e).__name__}: {e}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": str(e) or type(e).__name__, "message": "Error generating employee insights"},
        )
