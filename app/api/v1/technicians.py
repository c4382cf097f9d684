from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.tenancy import TenantContext, get_tenant_context
from app.db import models
from app.db.session import get_db
from app.schemas.resources import LocationPayload, PersonCreate, PersonUpdate, TechnicianResponse
from app.services import personnel

router = APIRouter(tags=["Technicians"])


@router.post("/technicians", response_model=TechnicianResponse, status_code=status.HTTP_201_CREATED)
def create_technician(
    payload: PersonCreate,
    ctx: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    return personnel.create_person(db, models.Technician, ctx, payload)


@router.get("/technicians", response_model=list[TechnicianResponse])
def list_technicians(
    active_only: bool = False,
    ctx: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    return personnel.list_people(db, models.Technician, ctx.organization_id, active_only)


@router.get("/technicians/{technician_id}", response_model=TechnicianResponse)
def get_technician(
    technician_id: str,
    ctx: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    return personnel.get_person(db, models.Technician, technician_id, ctx.organization_id)


@router.put("/technicians/{technician_id}", response_model=TechnicianResponse)
@router.patch("/technicians/{technician_id}", response_model=TechnicianResponse)
def update_technician(
    technician_id: str,
    payload: PersonUpdate,
    ctx: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    return personnel.update_person(db, models.Technician, technician_id, ctx.organization_id, payload)


@router.put("/technicians/{technician_id}/location", response_model=TechnicianResponse)
def update_technician_location(
    technician_id: str,
    payload: LocationPayload,
    ctx: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    return personnel.update_technician_location(
        db, technician_id, ctx.organization_id, payload.lat, payload.lng
    )


@router.delete("/technicians/{technician_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_technician(
    technician_id: str,
    ctx: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    personnel.delete_person(db, models.Technician, technician_id, ctx.organization_id)
    return None
