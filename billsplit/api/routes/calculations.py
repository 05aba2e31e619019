"""Calculation routes: compute, save, list, fetch and delete bill splits."""

from fastapi import APIRouter, Depends, HTTPException, status

from billsplit.api.dependencies import get_store
from billsplit.schemas.calculation import CalculationCreate, CalculationRecord, CalculationResult
from billsplit.services.apportionment import compute_shares
from billsplit.services.storage import CalculationStore

router = APIRouter(prefix="/calculations", tags=["calculations"])


@router.post("/preview", response_model=CalculationResult)
def preview_calculation(data: CalculationCreate) -> CalculationResult:
    """Compute tenant shares without saving them."""
    return compute_shares(data)


@router.post(
    "",
    response_model=CalculationRecord,
    status_code=status.HTTP_201_CREATED,
)
def create_calculation(
    data: CalculationCreate,
    store: CalculationStore = Depends(get_store),
) -> CalculationRecord:
    """Compute tenant shares and save the calculation.

    Shares are always recomputed from the readings; any derived values in the
    request body are ignored.
    """
    result = compute_shares(data)
    return store.save(result)


@router.get("", response_model=list[CalculationRecord])
def list_calculations(
    store: CalculationStore = Depends(get_store),
) -> list[CalculationRecord]:
    """List saved calculations, newest first."""
    return store.list()


@router.get("/{calculation_id}", response_model=CalculationRecord)
def get_calculation(
    calculation_id: int,
    store: CalculationStore = Depends(get_store),
) -> CalculationRecord:
    """Get a saved calculation by ID."""
    record = store.get_by_id(calculation_id)
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Calculation not found")
    return record


@router.delete("/{calculation_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_calculation(
    calculation_id: int,
    store: CalculationStore = Depends(get_store),
) -> None:
    """Delete a saved calculation."""
    if not store.delete_by_id(calculation_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Calculation not found")
