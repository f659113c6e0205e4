# billing/api/items.py

from typing import List, Optional

from fastapi import APIRouter

from billing.db.engine import get_engine
from billing.models.common import SuccessOut
from billing.models.items import ItemCreate, ItemOut, ItemUpdate
from billing.services import items as service

router = APIRouter(prefix="/items", tags=["items"])


@router.post("/", response_model=ItemOut, status_code=201)
def create_item(payload: ItemCreate) -> ItemOut:
    return ItemOut(**service.create_item(get_engine(), payload))


@router.get("/", response_model=List[ItemOut])
def list_items() -> List[ItemOut]:
    return [ItemOut(**row) for row in service.list_items(get_engine())]


@router.get("/{item_id}", response_model=Optional[ItemOut])
def get_item(item_id: int) -> Optional[ItemOut]:
    row = service.get_item(get_engine(), item_id)
    return ItemOut(**row) if row is not None else None


@router.patch("/{item_id}", response_model=ItemOut)
def update_item(item_id: int, payload: ItemUpdate) -> ItemOut:
    return ItemOut(**service.update_item(get_engine(), item_id, payload))


@router.delete("/{item_id}", response_model=SuccessOut)
def delete_item(item_id: int) -> SuccessOut:
    """
    Refused with 409 while any invoice line still uses the item.
    """
    return SuccessOut(success=service.delete_item(get_engine(), item_id))
