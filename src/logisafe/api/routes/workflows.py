"""Assignment workflow endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from ...models.domain import Session
from ...schemas.routing import RouteOptimizeRequest
from ...schemas.workflows import (
    AssignmentOutcomeModel,
    WorkflowAssignRequest,
    WorkflowCreateRequest,
    WorkflowModel,
    WorkflowSelectRequest,
)
from ...services.assignment.registry import get_workflow_registry
from ...services.export.geojson import scene_to_geojson
from ..deps import get_session, raise_for_service_error

router = APIRouter(prefix="/workflows", tags=["workflows"])


@router.post("", response_model=WorkflowModel, status_code=status.HTTP_201_CREATED)
def create_workflow(
    payload: WorkflowCreateRequest | None = None,
    session: Session = Depends(get_session),
) -> WorkflowModel:
    try:
        workflow = get_workflow_registry().create(session, payload.order_id if payload else None)
        return workflow.to_model()
    except Exception as exc:
        raise_for_service_error(exc, "open workflow")


@router.get("/{workflow_id}", response_model=WorkflowModel, status_code=status.HTTP_200_OK)
def get_workflow(workflow_id: str, session: Session = Depends(get_session)) -> WorkflowModel:
    try:
        workflow = get_workflow_registry().get(workflow_id)
        workflow.require_view(session)
        return workflow.to_model()
    except Exception as exc:
        raise_for_service_error(exc, "load workflow")


@router.post("/{workflow_id}/optimize", response_model=WorkflowModel, status_code=status.HTTP_200_OK)
def optimize(
    workflow_id: str,
    payload: RouteOptimizeRequest,
    session: Session = Depends(get_session),
) -> WorkflowModel:
    try:
        with get_workflow_registry().locked(workflow_id) as workflow:
            workflow.generate(session, payload)
            return workflow.to_model()
    except Exception as exc:
        raise_for_service_error(exc, "generate routes")


@router.post("/{workflow_id}/select", response_model=WorkflowModel, status_code=status.HTTP_200_OK)
def select(
    workflow_id: str,
    payload: WorkflowSelectRequest,
    session: Session = Depends(get_session),
) -> WorkflowModel:
    try:
        with get_workflow_registry().locked(workflow_id) as workflow:
            workflow.select(session, payload.variant_key)
            return workflow.to_model()
    except Exception as exc:
        raise_for_service_error(exc, "select route")


@router.post("/{workflow_id}/assign", response_model=AssignmentOutcomeModel, status_code=status.HTTP_200_OK)
def assign(
    workflow_id: str,
    payload: WorkflowAssignRequest,
    session: Session = Depends(get_session),
) -> AssignmentOutcomeModel:
    try:
        with get_workflow_registry().locked(workflow_id) as workflow:
            outcome = workflow.assign(session, payload.driver_id)
            return AssignmentOutcomeModel(
                status=outcome.status,
                order_id=outcome.order_id,
                driver_id=outcome.driver_id,
                route=outcome.route,
                assigned_at=outcome.assigned_at,
                duplicate=outcome.duplicate,
                workflow=workflow.to_model(),
            )
    except Exception as exc:
        raise_for_service_error(exc, "assign driver")


@router.post("/{workflow_id}/reset", response_model=WorkflowModel, status_code=status.HTTP_200_OK)
def reset(workflow_id: str, session: Session = Depends(get_session)) -> WorkflowModel:
    try:
        with get_workflow_registry().locked(workflow_id) as workflow:
            workflow.reset(session)
            return workflow.to_model()
    except Exception as exc:
        raise_for_service_error(exc, "reset workflow")


@router.delete("/{workflow_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_workflow(workflow_id: str, session: Session = Depends(get_session)) -> Response:
    try:
        get_workflow_registry().delete(session, workflow_id)
    except Exception as exc:
        raise_for_service_error(exc, "close workflow")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{workflow_id}/geojson", status_code=status.HTTP_200_OK)
def workflow_geojson(workflow_id: str, session: Session = Depends(get_session)) -> dict:
    """Current overlays of the workflow as a GeoJSON FeatureCollection."""
    try:
        workflow = get_workflow_registry().get(workflow_id)
        workflow.require_view(session)
        return scene_to_geojson(workflow.renderer.scene)
    except Exception as exc:
        raise_for_service_error(exc, "export workflow overlays")
