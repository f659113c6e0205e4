# billing/api/clients.py

from typing import List, Optional

from fastapi import APIRouter

from billing.db.engine import get_engine
from billing.models.clients import ClientCreate, ClientOut, ClientUpdate
from billing.models.common import SuccessOut
from billing.services import clients as service

router = APIRouter(prefix="/clients", tags=["clients"])


@router.post("/", response_model=ClientOut, status_code=201)
def create_client(payload: ClientCreate) -> ClientOut:
    return ClientOut(**service.create_client(get_engine(), payload))


@router.get("/", response_model=List[ClientOut])
def list_clients() -> List[ClientOut]:
    """
    Return all clients, newest first.
    """
    return [ClientOut(**row) for row in service.list_clients(get_engine())]


@router.get("/{client_id}", response_model=Optional[ClientOut])
def get_client(client_id: int) -> Optional[ClientOut]:
    row = service.get_client(get_engine(), client_id)
    return ClientOut(**row) if row is not None else None


@router.patch("/{client_id}", response_model=ClientOut)
def update_client(client_id: int, payload: ClientUpdate) -> ClientOut:
    return ClientOut(**service.update_client(get_engine(), client_id, payload))


@router.delete("/{client_id}", response_model=SuccessOut)
def delete_client(client_id: int) -> SuccessOut:
    """
    Refused with 409 while any invoice still references the client.
    """
    return SuccessOut(success=service.delete_client(get_engine(), client_id))
