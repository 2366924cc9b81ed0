"""
Customers API Router

GET  /customers          - all customers (newest first)
GET  /customers/{id}     - customer + policies
POST /customers          - create customer
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from api.dependencies import get_store
from services.storage.records import PolicyRepository

router = APIRouter(prefix="/customers", tags=["customers"])


class CreateCustomerRequest(BaseModel):
    """Customer creation"""
    name: str | None = None


@router.get("")
def list_customers(store: PolicyRepository = Depends(get_store)) -> dict:
    return {"customers": [c.to_dict() for c in store.list_customers()]}


@router.get("/{customer_id}")
def get_customer(customer_id: str, store: PolicyRepository = Depends(get_store)) -> dict:
    """Customer with their policies (extracted text omitted)"""
    customer = store.get_customer(customer_id)
    if customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")

    return {
        "customer": customer.to_dict(),
        "policies": [p.to_dict() for p in store.list_policies(customer_id)],
    }


@router.post("")
def create_customer(
    request: CreateCustomerRequest,
    store: PolicyRepository = Depends(get_store),
) -> dict:
    name = (request.name or "").strip()
    if not name:
        raise HTTPException(status_code=400, detail="Name is required")

    customer = store.create_customer(name)
    return {"customer": customer.to_dict()}
