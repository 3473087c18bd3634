"""Route selection and driver assignment workflow.

One workflow instance walks a single dispatch decision through

    Idle -> VariantsGenerated -> VariantSelected -> DriverAssigning -> Assigned

with ``reset()`` returning to Idle from any state. The caller's session is
passed to every transition; only admins may assign, and drivers may only look
at routes for orders already assigned to them.
"""

from __future__ import annotations

import logging
import uuid
from concurrent.futures import Executor
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Literal, Mapping, Optional, Sequence

from ...models.domain import (
    AssignmentRecord,
    DriverStatus,
    Order,
    OrderStatus,
    RouteVariant,
    Session,
    VariantKey,
    utcnow,
)
from ...schemas.routing import LatLng, RouteOptimizeRequest
from ...schemas.workflows import (
    MapSceneModel,
    RiskMarkerModel,
    RouteOverlayModel,
    WorkflowModel,
)
from ..access import require_admin, require_resolved
from ..maps.renderer import MapRenderer, MapScene
from ..orders.drivers import get_driver
from ..orders.repository import OrderRepository, get_order_repository
from ..risk.feed import record_route_risk
from ..routing import service as routing_service
from ..routing.variants import ROUTE_ARROW, RouteVariantSource

logger = logging.getLogger(__name__)

OutcomeStatus = Literal["recorded", "recorded_not_persisted"]
RiskUpdater = Callable[[str], object]
DirectionsFetcher = Callable[..., Mapping[str, routing_service.DirectionsResult]]


class WorkflowState(str, Enum):
    IDLE = "Idle"
    VARIANTS_GENERATED = "VariantsGenerated"
    VARIANT_SELECTED = "VariantSelected"
    DRIVER_ASSIGNING = "DriverAssigning"
    ASSIGNED = "Assigned"


@dataclass(slots=True)
class AssignmentOutcome:
    """Result of a driver assignment.

    ``recorded_not_persisted`` means the workflow and the in-process order
    reflect the assignment but the durable write failed.
    """

    status: OutcomeStatus
    order_id: Optional[str]
    driver_id: str
    route: str
    assigned_at: datetime
    duplicate: bool = False

    @property
    def persisted(self) -> bool:
        return self.status == "recorded"


def synthesize_instructions(variant: RouteVariant) -> list[str]:
    """Turn-by-turn text for a variant.

    Uses the variant's own directions when it has any; otherwise one line per
    adjacent pair of places in its arrow-separated path, plus one line naming
    the waypoints.
    """
    if variant.directions:
        return list(variant.directions)
    places = [part.strip() for part in variant.path.split(ROUTE_ARROW) if part.strip()]
    instructions = [f"Head from {start} towards {end}" for start, end in zip(places, places[1:])]
    if variant.waypoints:
        instructions.append(f"Pass through waypoints: {', '.join(variant.waypoints)}")
    return instructions


def _default_risk_updater(query: str) -> object:
    return record_route_risk(query)


class AssignmentWorkflow:
    def __init__(
        self,
        workflow_id: str | None = None,
        order_id: str | None = None,
        *,
        variant_source: RouteVariantSource | None = None,
        renderer: MapRenderer | None = None,
        repository: OrderRepository | None = None,
        directions_fetcher: DirectionsFetcher | None = None,
        risk_updater: RiskUpdater | None = None,
        background: Executor | None = None,
    ) -> None:
        self.id = workflow_id or uuid.uuid4().hex
        self.order_id = order_id
        self.variant_source = variant_source
        self.renderer = renderer or MapRenderer()
        self.repository = repository or get_order_repository()
        self.directions_fetcher = directions_fetcher
        self.risk_updater = risk_updater or _default_risk_updater
        self.background = background

        self.state = WorkflowState.IDLE
        self.variants: dict[str, RouteVariant] = {}
        self.selected: Optional[str] = None
        self.instructions: list[str] = []
        self.assigned_driver: Optional[str] = None
        self.assigned_at: Optional[datetime] = None

    # Access

    def _bound_order(self) -> Optional[Order]:
        if not self.order_id:
            return None
        order = self.repository.get(self.order_id)
        if order is None:
            raise LookupError(f"Order {self.order_id} not found")
        return order

    def require_view(self, session: Session) -> None:
        """Drivers may only look at routes for an order already assigned to them."""
        require_resolved(session)
        if session.is_admin:
            return
        order = self._bound_order()
        if order is None or order.driver != session.user_id:
            raise PermissionError("Drivers may only view routes for their own assignments")

    # Transitions

    def generate(self, session: Session, payload: RouteOptimizeRequest) -> dict[str, RouteVariant]:
        """Idle -> VariantsGenerated."""
        self.require_view(session)
        if self.state in (WorkflowState.DRIVER_ASSIGNING, WorkflowState.ASSIGNED):
            raise ValueError("Route already assigned; reset the workflow before generating new routes")

        order = self._bound_order()
        if order is not None:
            payload = payload.model_copy(
                update={
                    "start_location": payload.start_location or order.pickup_location,
                    "end_location": payload.end_location or order.delivery_location,
                    "cargo_type": payload.cargo_type or order.cargo_type,
                }
            )

        variants = routing_service.generate_variants(payload, self.variant_source)
        if not variants:
            raise ValueError("No route variants were generated")
        selected = VariantKey.SAFEST.value if VariantKey.SAFEST.value in variants else next(iter(variants))

        fetcher = self.directions_fetcher or routing_service.fetch_variant_directions
        directions = fetcher(variants, payload.start_location, payload.end_location, payload.stops)
        self.renderer.render(directions, selected)

        self.variants = variants
        self.selected = selected
        self.instructions = synthesize_instructions(variants[selected])
        self.state = WorkflowState.VARIANTS_GENERATED
        logger.info(
            f"Workflow {self.id}: {len(variants)} variants for "
            f"{payload.start_location} -> {payload.end_location}, auto-selected {selected}"
        )
        return variants

    def select(self, session: Session, variant_key: str) -> RouteVariant:
        """VariantsGenerated/VariantSelected -> VariantSelected. The order is not touched."""
        self.require_view(session)
        if self.state not in (WorkflowState.VARIANTS_GENERATED, WorkflowState.VARIANT_SELECTED):
            raise ValueError(f"Cannot select a route in state {self.state.value}")
        variant = self.variants.get(variant_key)
        if variant is None:
            raise ValueError(f"Unknown route variant: {variant_key}")
        self.renderer.restyle(variant_key)
        self.selected = variant_key
        self.instructions = synthesize_instructions(variant)
        self.state = WorkflowState.VARIANT_SELECTED
        return variant

    def assign(self, session: Session, driver_id: Optional[str]) -> AssignmentOutcome:
        """VariantSelected -> DriverAssigning -> Assigned."""
        require_admin(session, "assign drivers")

        if self.state == WorkflowState.ASSIGNED:
            repeated = get_driver(driver_id)
            if repeated is not None and repeated.id == self.assigned_driver:
                logger.info(f"Workflow {self.id}: repeated assignment of {repeated.id}, nothing recorded")
                return AssignmentOutcome(
                    status="recorded",
                    order_id=self.order_id,
                    driver_id=repeated.id,
                    route=self.selected,
                    assigned_at=self.assigned_at,
                    duplicate=True,
                )
            raise ValueError("Route already assigned; reset the workflow to assign another driver")

        if not self.selected or self.state not in (
            WorkflowState.VARIANTS_GENERATED,
            WorkflowState.VARIANT_SELECTED,
        ):
            raise ValueError("Select a route before assigning a driver")
        if not driver_id:
            raise ValueError("Select a driver before assigning")
        driver = get_driver(driver_id)
        if driver is None:
            raise ValueError(f"Unknown driver: {driver_id}")
        if driver.status != DriverStatus.AVAILABLE:
            raise ValueError(f"Driver {driver.id} is {driver.status.value.lower()} and cannot be assigned")
        order = self._bound_order()

        route = self.selected
        variant = self.variants[route]
        previous_state = self.state
        self.state = WorkflowState.DRIVER_ASSIGNING
        try:
            outcome = self._record(order, driver.id, route)
        except Exception:
            self.state = previous_state
            raise

        self.assigned_driver = driver.id
        self.assigned_at = outcome.assigned_at
        self.state = WorkflowState.ASSIGNED
        if not outcome.duplicate:
            self._schedule_risk_update(variant.path)
        logger.info(
            f"Workflow {self.id}: driver {driver.id} assigned route {route}"
            f"{f' to order {order.id}' if order else ''} ({outcome.status})"
        )
        return outcome

    def reset(self, session: Session) -> None:
        """Any state -> Idle, releasing every map overlay.

        Drivers may reset only a workflow they can view and only before a
        driver has been assigned.
        """
        self.require_view(session)
        if session.is_driver and self.state in (WorkflowState.DRIVER_ASSIGNING, WorkflowState.ASSIGNED):
            raise PermissionError("Only admins may reset an assigned workflow")
        self.renderer.clear()
        self.variants = {}
        self.selected = None
        self.instructions = []
        self.assigned_driver = None
        self.assigned_at = None
        self.state = WorkflowState.IDLE

    # Helpers

    def _record(self, order: Optional[Order], driver_id: str, route: str) -> AssignmentOutcome:
        if (
            order is not None
            and order.driver == driver_id
            and order.route == route
            and order.status == OrderStatus.IN_TRANSIT
        ):
            return AssignmentOutcome(
                status="recorded",
                order_id=order.id,
                driver_id=driver_id,
                route=route,
                assigned_at=order.assigned_at or utcnow(),
                duplicate=True,
            )

        assigned_at = utcnow()
        persisted = True
        if order is not None:
            order.driver = driver_id
            order.route = route
            order.status = OrderStatus.IN_TRANSIT
            order.assigned_at = assigned_at
            persisted = self.repository.save(order)
        record = AssignmentRecord(
            order_id=order.id if order else None,
            driver_id=driver_id,
            route=route,
            assigned_at=assigned_at,
        )
        persisted = self.repository.append_assignment(record) and persisted
        if not persisted:
            logger.warning(f"Workflow {self.id}: assignment recorded but not durably persisted")
        return AssignmentOutcome(
            status="recorded" if persisted else "recorded_not_persisted",
            order_id=record.order_id,
            driver_id=driver_id,
            route=route,
            assigned_at=assigned_at,
        )

    def _schedule_risk_update(self, query: str) -> None:
        def run() -> None:
            try:
                self.risk_updater(query)
            except Exception:
                logger.exception(f"Workflow {self.id}: risk update after assignment failed")

        if self.background is None:
            run()
            return
        try:
            self.background.submit(run)
        except RuntimeError as e:
            logger.warning(f"Workflow {self.id}: risk update not scheduled: {e}")

    # Views

    def to_model(self) -> WorkflowModel:
        return WorkflowModel(
            id=self.id,
            state=self.state.value,
            order_id=self.order_id,
            variants={key: routing_service.variant_to_model(v) for key, v in self.variants.items()},
            selected_variant=self.selected,
            instructions=list(self.instructions),
            map=scene_to_model(self.renderer.scene),
            assigned_driver=self.assigned_driver,
            assigned_at=self.assigned_at,
        )


def _pairs(points: Optional[Sequence[tuple[float, float]]]) -> Optional[list[list[float]]]:
    return [list(point) for point in points] if points is not None else None


def scene_to_model(scene: Optional[MapScene]) -> Optional[MapSceneModel]:
    if scene is None:
        return None
    return MapSceneModel(
        mode=scene.mode,
        center=LatLng(lat=scene.center[0], lng=scene.center[1]),
        overlays=[
            RouteOverlayModel(
                variant_key=overlay.variant_key,
                path=[LatLng(lat=lat, lng=lng) for lat, lng in overlay.path],
                color=overlay.color,
                weight=overlay.weight,
                opacity=overlay.opacity,
                selected=overlay.selected,
                dashed=overlay.dashed,
                source=overlay.source,
                fallback_reason=overlay.fallback_reason,
                canvas_points=_pairs(overlay.canvas_points),
            )
            for overlay in scene.overlays
        ],
        risk_markers=[
            RiskMarkerModel(
                zone_id=marker.zone_id,
                area=marker.area,
                risk_level=marker.risk_level.value,
                coordinates=LatLng(lat=marker.latitude, lng=marker.longitude),
                color=marker.color,
                radius_m=marker.radius_m,
                canvas_point=list(marker.canvas_point) if marker.canvas_point else None,
                canvas_radius=marker.canvas_radius,
            )
            for marker in scene.risk_markers
        ],
    )
