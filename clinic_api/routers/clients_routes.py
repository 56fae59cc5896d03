# clinic_api/routers/clients_routes.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from clinic_api.db import get_session
from clinic_api.models import Client
from clinic_api.repository import save
from clinic_api.deps import apply_changes, deactivate
from clinic_api.schemas import ClientCreate, ClientPublic, ClientUpdate
from clinic_api.auth import get_current_user

router = APIRouter(
    prefix="/clients",
    tags=["clients"],
)


def _is_admin(user: dict) -> bool:
    return user["role"] == "ADMIN"


@router.post("", response_model=ClientPublic, status_code=201)
def create_client(
    client: ClientCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    # regular users can only register clients they own
    user_id = client.user_id if _is_admin(current_user) else current_user["id"]

    db_client = Client(
        name=client.name,
        email=client.email,
        phone=client.phone,
        user_id=user_id,
    )
    return save(session, db_client)


@router.get("", response_model=List[ClientPublic])
def list_clients(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    stmt = select(Client).where(Client.active == True)  # noqa: E712
    if not _is_admin(current_user):
        stmt = stmt.where(Client.user_id == current_user["id"])
    return session.exec(stmt.order_by(Client.name)).all()


def _owned_client(session: Session, client_id: int, user: dict) -> Client:
    client = session.get(Client, client_id)
    if client is None:
        raise HTTPException(status_code=404, detail="Client not found")
    if not _is_admin(user) and client.user_id != user["id"]:
        raise HTTPException(status_code=403, detail="Forbidden")
    return client


@router.get("/{client_id}", response_model=ClientPublic)
def get_client(
    client_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return _owned_client(session, client_id, current_user)


@router.put("/{client_id}", response_model=ClientPublic)
def update_client(
    client_id: int,
    changes: ClientUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    client = _owned_client(session, client_id, current_user)
    return save(session, apply_changes(client, changes))


@router.delete("/{client_id}", status_code=204)
def delete_client(
    client_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return deactivate(session, _owned_client(session, client_id, current_user))
