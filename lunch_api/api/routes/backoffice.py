"""Placeholder CRM and ERP endpoints. They only demonstrate role gating."""

from typing import Any

from fastapi import APIRouter

from lunch_api.core.dependencies import AdminSession, ElevatedSession

crm_router = APIRouter()
erp_router = APIRouter()


@crm_router.get("/customers")
def list_customers(session: ElevatedSession) -> dict[str, Any]:
    return {"success": True, "customers": [], "message": "CRM customers (placeholder)"}


@crm_router.post("/customers")
def create_customer(session: ElevatedSession) -> dict[str, Any]:
    return {"success": True, "message": "CRM customer creation is not implemented"}


@erp_router.get("/hr")
def list_hr_records(session: AdminSession) -> dict[str, Any]:
    return {"success": True, "records": [], "message": "ERP HR (placeholder)"}


@erp_router.post("/hr")
def create_hr_record(session: AdminSession) -> dict[str, Any]:
    return {"success": True, "message": "ERP HR record creation is not implemented"}
