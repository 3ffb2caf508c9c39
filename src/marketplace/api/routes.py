"""HTTP routes for the negotiation operation contract.

The caller is identified by the ``X-User-Id`` header and resolved through
the identity provider.  Service calls are synchronous and run in a worker
thread; a cancelled request never leaves a partial append because each
service operation publishes its result in a single step.
"""

from __future__ import annotations

import asyncio
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Header, HTTPException, Request

from marketplace.api.schemas import (
    SendMessageRequest,
    StartNegotiationRequest,
    StartNegotiationResponse,
)
from marketplace.domain.models import Message, Negotiation, NegotiationView, UserProfile
from marketplace.domain.types import NegotiationStatus
from marketplace.service import NegotiationService

router = APIRouter(prefix="/negotiations", tags=["negotiations"])


def get_service(request: Request) -> NegotiationService:
    """Return the negotiation service stored on the app."""
    services: dict[str, Any] = request.app.state.services
    return services["negotiation_service"]


def current_actor(
    request: Request,
    x_user_id: Annotated[str | None, Header()] = None,
) -> UserProfile:
    """Resolve the ``X-User-Id`` header to a user profile, or answer 401."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="X-User-Id header is required")
    identity = request.app.state.services["identity_provider"]
    profile: UserProfile | None = identity.get_user(x_user_id)
    if profile is None:
        raise HTTPException(status_code=401, detail=f"Unknown user {x_user_id!r}")
    return profile


ServiceDep = Annotated[NegotiationService, Depends(get_service)]
ActorDep = Annotated[UserProfile, Depends(current_actor)]


@router.post("", status_code=201, response_model=StartNegotiationResponse)
async def start_negotiation(
    body: StartNegotiationRequest, service: ServiceDep, actor: ActorDep
) -> StartNegotiationResponse:
    negotiation_id = await asyncio.to_thread(
        service.start,
        actor.id,
        body.product_id,
        body.seller_id,
        body.initial_offer,
        body.content,
    )
    return StartNegotiationResponse(negotiation_id=negotiation_id)


@router.get("", response_model=list[Negotiation])
async def list_negotiations(
    service: ServiceDep,
    actor: ActorDep,
    status: NegotiationStatus | None = None,
) -> list[Negotiation]:
    """Negotiations the caller takes part in, on the side of their role."""
    return service.for_participant(actor.id, actor.role, status)


@router.get("/{negotiation_id}", response_model=NegotiationView)
async def get_negotiation(
    negotiation_id: str, service: ServiceDep, actor: ActorDep
) -> NegotiationView:
    """Participant view; includes counterparty contact once completed."""
    return await asyncio.to_thread(service.view, negotiation_id, actor.id)


@router.post("/{negotiation_id}/messages", status_code=201, response_model=Message)
async def send_message(
    negotiation_id: str,
    body: SendMessageRequest,
    service: ServiceDep,
    actor: ActorDep,
) -> Message:
    return await asyncio.to_thread(
        service.send_message,
        negotiation_id,
        actor.id,
        body.content,
        body.offer_amount,
    )


@router.post("/{negotiation_id}/accept", response_model=Negotiation)
async def accept_offer(negotiation_id: str, service: ServiceDep, actor: ActorDep) -> Negotiation:
    return await asyncio.to_thread(service.accept_offer, negotiation_id, actor.id)


@router.post("/{negotiation_id}/reject", response_model=Negotiation)
async def reject_offer(negotiation_id: str, service: ServiceDep, actor: ActorDep) -> Negotiation:
    return await asyncio.to_thread(service.reject_offer, negotiation_id, actor.id)


@router.post("/{negotiation_id}/complete", response_model=Negotiation)
async def complete_purchase(
    negotiation_id: str, service: ServiceDep, actor: ActorDep
) -> Negotiation:
    return await asyncio.to_thread(service.complete_purchase, negotiation_id, actor.id)
