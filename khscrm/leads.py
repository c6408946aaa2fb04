# khscrm/leads.py
"""
Supplier email lead imports: review, approval and rejection.

A lead arrives as ``pending``. Approving it creates (or reuses) a customer and
opens a job for them; rejecting it keeps the row with the reason in its notes.
Processed leads can no longer be edited.
"""
from __future__ import annotations
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from . import crud, schemas
from .auth import get_current_user
from .database import get_db
from .sessions import UserContext

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/import-leads",
    tags=["import-leads"],
    dependencies=[Depends(get_current_user)],
)


@router.get("", response_model=list[schemas.ImportLeadOut])
def list_leads(
    status_filter: str = Query("pending", alias="status", description="pending, approved, rejected or all"),
    db: Session = Depends(get_db),
):
    return crud.list_import_leads(db, status_filter)


@router.post("", response_model=schemas.ImportLeadOut)
def create_lead(payload: schemas.ImportLeadIn, db: Session = Depends(get_db)):
    if not payload.name or not payload.name.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Name is required")
    lead = crud.create_import_lead(db, payload)
    logger.info("Imported lead %s (%s)", lead.id, lead.subject_line or "no subject")
    return lead


@router.get("/stats/summary", response_model=schemas.LeadStats)
def lead_stats(db: Session = Depends(get_db)):
    return crud.import_lead_stats(db)


@router.get("/{lead_id}", response_model=schemas.ImportLeadOut)
def get_lead(lead_id: str, db: Session = Depends(get_db)):
    lead = crud.get_import_lead(db, lead_id)
    if lead is None:
        raise HTTPException(status_code=404, detail="Import lead not found")
    return lead


@router.put("/{lead_id}", response_model=schemas.LeadResult)
def update_lead(lead_id: str, payload: schemas.ImportLeadUpdate, db: Session = Depends(get_db)):
    if not payload.name or not payload.name.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Name is required")
    if not crud.update_pending_lead(db, lead_id, payload):
        raise HTTPException(status_code=404, detail="Import lead not found or already processed")
    return {"message": "Import lead updated successfully"}


@router.post("/{lead_id}/approve", response_model=schemas.LeadApproved)
def approve_lead(
    lead_id: str,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    lead = crud.get_import_lead(db, lead_id)
    if lead is None:
        raise HTTPException(status_code=404, detail="Import lead not found")
    if lead.status != "pending":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Lead already processed")
    customer_id, job_id = crud.approve_import_lead(db, lead, current_user.id)
    logger.info("Lead %s approved by %s: customer %s, job %s", lead_id, current_user.email, customer_id, job_id)
    return {"message": "Lead approved successfully", "customerId": customer_id, "jobId": job_id}


@router.post("/{lead_id}/reject", response_model=schemas.LeadResult)
def reject_lead(
    lead_id: str,
    payload: schemas.LeadReject | None = None,
    db: Session = Depends(get_db),
    current_user: UserContext = Depends(get_current_user),
):
    reason = payload.reason if payload else None
    if not crud.reject_import_lead(db, lead_id, current_user.id, reason):
        raise HTTPException(status_code=404, detail="Import lead not found or already processed")
    logger.info("Lead %s rejected by %s", lead_id, current_user.email)
    return {"message": "Lead rejected successfully"}


@router.delete("/{lead_id}", response_model=schemas.LeadResult)
def delete_lead(lead_id: str, db: Session = Depends(get_db)):
    if not crud.delete_import_lead(db, lead_id):
        raise HTTPException(status_code=404, detail="Lead not found")
    return {"message": "Lead deleted successfully"}
