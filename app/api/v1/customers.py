from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.tenancy import TenantContext, get_tenant_context
from app.db.session import get_db
from app.schemas.resources import CustomerCreate, CustomerResponse, CustomerUpdate
from app.services import customers

router = APIRouter(tags=["Customers"])


@router.post("/customers", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
def create_customer(
    payload: CustomerCreate,
    ctx: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    return customers.create_customer(db, ctx, payload)


@router.get("/customers", response_model=list[CustomerResponse])
def list_customers(
    search: Optional[str] = None,
    ctx: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    return customers.list_customers(db, ctx.organization_id, search)


@router.get("/customers/{customer_id}", response_model=CustomerResponse)
def get_customer(
    customer_id: str,
    ctx: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    return customers.get_customer(db, customer_id, ctx.organization_id)


@router.put("/customers/{customer_id}", response_model=CustomerResponse)
@router.patch("/customers/{customer_id}", response_model=CustomerResponse)
def update_customer(
    customer_id: str,
    payload: CustomerUpdate,
    ctx: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    return customers.update_customer(db, customer_id, ctx.organization_id, payload)


@router.delete("/customers/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_customer(
    customer_id: str,
    ctx: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    customers.delete_customer(db, customer_id, ctx.organization_id)
    return None
