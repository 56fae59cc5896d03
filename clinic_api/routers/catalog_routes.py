# clinic_api/routers/catalog_routes.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlmodel import Session, select

from clinic_api.db import get_session
from clinic_api.models import InsurancePlan, Procedure, ProcedurePlanPrice, Professional
from clinic_api.repository import delete, save
from clinic_api.schemas import (
    InsurancePlanCreate,
    InsurancePlanPublic,
    InsurancePlanUpdate,
    PlanPricePublic,
    PlanPriceSet,
    ProcedureCreate,
    ProcedurePublic,
    ProcedureUpdate,
    ProfessionalCreate,
    ProfessionalPublic,
    ProfessionalUpdate,
)
from clinic_api.auth import get_current_user
from clinic_api.deps import apply_changes, deactivate, require_role

router = APIRouter(
    tags=["catalog"],
)


def _get_or_404(session: Session, model, entity_id: int, label: str):
    entity = session.get(model, entity_id)
    if entity is None:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return entity


# Professionals

@router.post("/professionals", response_model=ProfessionalPublic, status_code=201)
def create_professional(
    professional: ProfessionalCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "ADMIN")
    return save(session, Professional(**professional.model_dump()))


@router.get("/professionals", response_model=List[ProfessionalPublic])
def list_professionals(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return session.exec(
        select(Professional).where(Professional.active == True).order_by(Professional.name)  # noqa: E712
    ).all()


@router.get("/professionals/{professional_id}", response_model=ProfessionalPublic)
def get_professional(
    professional_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return _get_or_404(session, Professional, professional_id, "Professional")


@router.put("/professionals/{professional_id}", response_model=ProfessionalPublic)
def update_professional(
    professional_id: int,
    changes: ProfessionalUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "ADMIN")
    professional = _get_or_404(session, Professional, professional_id, "Professional")
    return save(session, apply_changes(professional, changes))


@router.delete("/professionals/{professional_id}", status_code=204)
def delete_professional(
    professional_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "ADMIN")
    return deactivate(session, _get_or_404(session, Professional, professional_id, "Professional"))


# Procedures

@router.post("/procedures", response_model=ProcedurePublic, status_code=201)
def create_procedure(
    procedure: ProcedureCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "ADMIN")
    return save(session, Procedure(**procedure.model_dump()))


@router.get("/procedures", response_model=List[ProcedurePublic])
def list_procedures(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return session.exec(
        select(Procedure).where(Procedure.active == True).order_by(Procedure.name)  # noqa: E712
    ).all()


@router.get("/procedures/{procedure_id}", response_model=ProcedurePublic)
def get_procedure(
    procedure_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return _get_or_404(session, Procedure, procedure_id, "Procedure")


@router.put("/procedures/{procedure_id}", response_model=ProcedurePublic)
def update_procedure(
    procedure_id: int,
    changes: ProcedureUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "ADMIN")
    procedure = _get_or_404(session, Procedure, procedure_id, "Procedure")
    return save(session, apply_changes(procedure, changes))


@router.delete("/procedures/{procedure_id}", status_code=204)
def delete_procedure(
    procedure_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "ADMIN")
    return deactivate(session, _get_or_404(session, Procedure, procedure_id, "Procedure"))


@router.get("/procedures/{procedure_id}/insurance-plans", response_model=List[PlanPricePublic])
def list_plan_prices(
    procedure_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    _get_or_404(session, Procedure, procedure_id, "Procedure")
    return session.exec(
        select(ProcedurePlanPrice)
        .where(ProcedurePlanPrice.procedure_id == procedure_id)
        .order_by(ProcedurePlanPrice.insurance_plan_id)
    ).all()


@router.put("/procedures/{procedure_id}/insurance-plans/{plan_id}", response_model=PlanPricePublic)
def set_plan_price(
    procedure_id: int,
    plan_id: int,
    body: PlanPriceSet,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "ADMIN")
    _get_or_404(session, Procedure, procedure_id, "Procedure")
    _get_or_404(session, InsurancePlan, plan_id, "Insurance plan")

    entry = session.exec(
        select(ProcedurePlanPrice)
        .where(ProcedurePlanPrice.procedure_id == procedure_id)
        .where(ProcedurePlanPrice.insurance_plan_id == plan_id)
    ).first()
    if entry is None:
        entry = ProcedurePlanPrice(procedure_id=procedure_id, insurance_plan_id=plan_id, price=body.price)
    else:
        entry.price = body.price
    return save(session, entry)


@router.delete("/procedures/{procedure_id}/insurance-plans/{plan_id}", status_code=204)
def remove_plan_price(
    procedure_id: int,
    plan_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "ADMIN")
    entry = session.exec(
        select(ProcedurePlanPrice)
        .where(ProcedurePlanPrice.procedure_id == procedure_id)
        .where(ProcedurePlanPrice.insurance_plan_id == plan_id)
    ).first()
    if entry is None:
        raise HTTPException(status_code=404, detail="No price set for this insurance plan")
    delete(session, entry)
    return Response(status_code=204)


# Insurance plans ("convênios")

@router.post("/insurance-plans", response_model=InsurancePlanPublic, status_code=201)
def create_insurance_plan(
    plan: InsurancePlanCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "ADMIN")
    return save(session, InsurancePlan(**plan.model_dump()))


@router.get("/insurance-plans", response_model=List[InsurancePlanPublic])
def list_insurance_plans(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return session.exec(
        select(InsurancePlan).where(InsurancePlan.active == True).order_by(InsurancePlan.name)  # noqa: E712
    ).all()


@router.get("/insurance-plans/{plan_id}", response_model=InsurancePlanPublic)
def get_insurance_plan(
    plan_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return _get_or_404(session, InsurancePlan, plan_id, "Insurance plan")


@router.put("/insurance-plans/{plan_id}", response_model=InsurancePlanPublic)
def update_insurance_plan(
    plan_id: int,
    changes: InsurancePlanUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "ADMIN")
    plan = _get_or_404(session, InsurancePlan, plan_id, "Insurance plan")
    return save(session, apply_changes(plan, changes))


@router.delete("/insurance-plans/{plan_id}", status_code=204)
def delete_insurance_plan(
    plan_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "ADMIN")
    return deactivate(session, _get_or_404(session, InsurancePlan, plan_id, "Insurance plan"))
