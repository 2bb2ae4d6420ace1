from fastapi import APIRouter, Depends, Response
from typing import List

from cost_manager.db.dal import Database
from cost_manager.models.cost import NewCostIn, StoredCost
from cost_manager.routers.deps import get_db

router = APIRouter(prefix="/costs", tags=["costs"])


# Routes -----------------------------------------------------------
@router.post("/", response_model=StoredCost, status_code=201, summary="Add a cost")
def create_cost(
    payload: NewCostIn,
    db: Database = Depends(get_db),
):
    # ValidationError / StoreUnavailable are mapped by the app's handlers
    return db.insert_cost(payload)


@router.get(
    "/", response_model=List[StoredCost], summary="List all costs, newest first"
)
def list_costs(db: Database = Depends(get_db)):
    return db.list_costs_newest_first()


@router.delete("/{cost_id}", status_code=204, summary="Delete a cost (idempotent)")
def delete_cost(cost_id: int, db: Database = Depends(get_db)):
    db.delete_cost(cost_id)
    return Response(status_code=204)
