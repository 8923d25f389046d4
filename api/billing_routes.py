from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from .schemas import (
    CheckoutRequest,
    CheckoutResponse,
    PortalRequest,
    PortalResponse,
    SubscriptionStatusRequest,
    SubscriptionStatusResponse,
    WebhookResponse,
)
from .deps import get_billing_service, get_session
from services.billing import BillingService

router = APIRouter()


@router.post("/checkout-session", response_model=CheckoutResponse)
def checkout_session(
    payload: CheckoutRequest,
    session: Session = Depends(get_session),
    billing: BillingService = Depends(get_billing_service),
):
    created = billing.create_checkout_session(
        session,
        payload.user_id,
        payload.email,
        payload.plan_id,
        payload.success_url,
        payload.cancel_url,
    )
    return CheckoutResponse(**created)


@router.post("/portal-session", response_model=PortalResponse)
def portal_session(payload: PortalRequest, billing: BillingService = Depends(get_billing_service)):
    return PortalResponse(portal_url=billing.create_portal_session(payload.customer_id, payload.return_url))


@router.post("/subscription-status", response_model=SubscriptionStatusResponse)
def subscription_status(
    payload: SubscriptionStatusRequest,
    session: Session = Depends(get_session),
    billing: BillingService = Depends(get_billing_service),
):
    return SubscriptionStatusResponse(**billing.subscription_status(session, payload.user_id))


@router.post("/stripe/webhook", response_model=WebhookResponse)
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="Stripe-Signature"),
    session: Session = Depends(get_session),
    billing: BillingService = Depends(get_billing_service),
):
    # the signature is computed over the exact bytes, so the body is never parsed first
    payload = await request.body()
    event_type = await run_in_threadpool(billing.handle_webhook, session, payload, stripe_signature)
    return WebhookResponse(event_type=event_type)
