# transit_checkin/routers/maintenance.py
"""Operational endpoints — code index repair."""

from fastapi import APIRouter, Depends

from transit_checkin.database import get_store
from transit_checkin.schemas.maintenance import ReconcileOut
from transit_checkin.services.code_index_service import reconcile_code_index
from transit_checkin.store.base import StoreClient

router = APIRouter()


@router.post("/maintenance/reconcile-codes", response_model=ReconcileOut, summary="Repair the code index")
async def reconcile_codes(apply: bool = True, store: StoreClient = Depends(get_store)):
    """Use apply=false for a dry run that only reports what would change."""
    return ReconcileOut.model_validate(await reconcile_code_index(store, apply=apply))
