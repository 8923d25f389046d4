from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import stripe
from sqlalchemy.orm import Session

from db.models import Subscription, utcnow
from db.session import atomic
from utils.config import (
    STRIPE_MONTHLY_PRICE_ID,
    STRIPE_SECRET_KEY,
    STRIPE_WEBHOOK_SECRET,
    STRIPE_YEARLY_PRICE_ID,
)
from utils.exceptions import BillingError, ValidationError

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = {"active", "trialing"}

DEFAULT_PLANS: Dict[str, Dict[str, Any]] = {
    "monthly": {"price_id": STRIPE_MONTHLY_PRICE_ID, "name": "Plano Mensal", "amount": 12000},
    "yearly": {"price_id": STRIPE_YEARLY_PRICE_ID, "name": "Plano Anual", "amount": 122400},
}


def _from_epoch(value) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc).replace(tzinfo=None)


def _period_field(subscription, key: str) -> Optional[datetime]:
    # Newer API versions moved the billing period onto the subscription items.
    value = subscription.get(key)
    if value is None:
        items = (subscription.get("items") or {}).get("data") or []
        if items:
            value = items[0].get(key)
    return _from_epoch(value)


class BillingService:
    """Stripe checkout, billing portal, subscription status and webhook handling."""

    def __init__(self, api_key: Optional[str] = STRIPE_SECRET_KEY,
                 webhook_secret: Optional[str] = STRIPE_WEBHOOK_SECRET,
                 plans: Optional[Dict[str, Dict[str, Any]]] = None):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.plans = plans or DEFAULT_PLANS

    def _require_key(self) -> str:
        if not self.api_key:
            raise BillingError("Stripe is not configured (STRIPE_SECRET_KEY missing)")
        return self.api_key

    def create_checkout_session(self, session: Session, user_id: str, email: str, plan_id: str,
                                success_url: str, cancel_url: str) -> Dict[str, str]:
        if not user_id or not email or not plan_id:
            raise ValidationError("user_id, email and plan_id are required")
        plan = self.plans.get(plan_id)
        if plan is None:
            raise ValidationError(f"Invalid plan '{plan_id}'")
        api_key = self._require_key()

        existing = session.query(Subscription).filter(Subscription.user_id == user_id).one_or_none()
        if existing is not None and existing.stripe_customer_id:
            customer_id = existing.stripe_customer_id
        else:
            customer = stripe.Customer.create(email=email, metadata={"user_id": user_id}, api_key=api_key)
            customer_id = customer["id"]

        metadata = {"user_id": user_id, "plan_id": plan_id}
        checkout = stripe.checkout.Session.create(
            customer=customer_id,
            payment_method_types=["card"],
            line_items=[{"price": plan["price_id"], "quantity": 1}],
            mode="subscription",
            success_url=success_url + "?session_id={CHECKOUT_SESSION_ID}",
            cancel_url=cancel_url,
            metadata=metadata,
            subscription_data={"metadata": metadata},
            api_key=api_key,
        )
        logger.info("Created checkout session %s for user %s (%s)", checkout["id"], user_id, plan_id)
        return {"checkout_url": checkout["url"], "session_id": checkout["id"]}

    def create_portal_session(self, customer_id: str, return_url: str) -> str:
        if not customer_id or not return_url:
            raise ValidationError("customer_id and return_url are required")
        portal = stripe.billing_portal.Session.create(
            customer=customer_id, return_url=return_url, api_key=self._require_key()
        )
        return portal["url"]

    def subscription_status(self, session: Session, user_id: str) -> Dict[str, Any]:
        if not user_id:
            raise ValidationError("user_id is required")
        sub = session.query(Subscription).filter(Subscription.user_id == user_id).one_or_none()
        if sub is None:
            return {"active": False, "status": None, "plan": None, "plan_name": None,
                    "next_charge": None, "amount": None, "cancel_at_period_end": False,
                    "customer_id": None}

        active = sub.status in ACTIVE_STATUSES
        plan = self.plans.get(sub.plan_id or "", {})
        return {
            "active": active,
            "status": sub.status,
            "plan": sub.plan_id if active else None,
            "plan_name": sub.plan_name,
            "next_charge": sub.current_period_end if active and not sub.cancel_at_period_end else None,
            "amount": plan.get("amount") if active else None,
            "cancel_at_period_end": bool(sub.cancel_at_period_end),
            "customer_id": sub.stripe_customer_id,
        }

    def handle_webhook(self, session: Session, payload: bytes, signature: Optional[str]) -> str:
        """Verify the Stripe signature, then apply the event. Returns the event type."""
        if not signature or not self.webhook_secret:
            raise BillingError("Missing signature or webhook secret")
        try:
            event = stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.warning("Webhook signature verification failed: %s", e)
            raise BillingError("Webhook signature verification failed")

        event_type = event["type"]
        obj = event["data"]["object"]
        logger.info("Processing webhook event %s", event_type)

        if event_type == "checkout.session.completed":
            self._checkout_completed(session, obj)
        elif event_type == "customer.subscription.updated":
            self._subscription_updated(session, obj)
        elif event_type == "customer.subscription.deleted":
            self._subscription_deleted(session, obj)
        else:
            logger.info("Unhandled event type: %s", event_type)
        return event_type

    def _checkout_completed(self, session: Session, checkout) -> None:
        if checkout.get("mode") != "subscription" or not checkout.get("subscription"):
            return
        metadata = checkout.get("metadata") or {}
        user_id = metadata.get("user_id")
        if not user_id:
            raise BillingError("User ID not found in session metadata")
        plan_id = metadata.get("plan_id") or "monthly"

        remote = stripe.Subscription.retrieve(checkout["subscription"], api_key=self._require_key())
        with atomic(session):
            sub = session.query(Subscription).filter(Subscription.user_id == user_id).one_or_none()
            if sub is None:
                sub = Subscription(user_id=user_id)
                session.add(sub)
            sub.stripe_customer_id = checkout.get("customer")
            sub.stripe_subscription_id = remote["id"]
            sub.status = remote.get("status")
            sub.plan_id = plan_id
            sub.plan_name = self.plans.get(plan_id, {}).get("name", "Plano Desconhecido")
            sub.current_period_start = _period_field(remote, "current_period_start")
            sub.current_period_end = _period_field(remote, "current_period_end")
            sub.cancel_at_period_end = bool(remote.get("cancel_at_period_end") or False)
            sub.updated_at = utcnow()
        logger.info("Subscription for user %s created/updated", user_id)

    def _subscription_updated(self, session: Session, remote) -> None:
        with atomic(session):
            sub = self._by_subscription_id(session, remote["id"])
            if sub is None:
                return
            sub.status = remote.get("status")
            sub.current_period_start = _period_field(remote, "current_period_start")
            sub.current_period_end = _period_field(remote, "current_period_end")
            sub.cancel_at_period_end = bool(remote.get("cancel_at_period_end") or False)
            sub.updated_at = utcnow()
        logger.info("Subscription %s updated", remote["id"])

    def _subscription_deleted(self, session: Session, remote) -> None:
        with atomic(session):
            sub = self._by_subscription_id(session, remote["id"])
            if sub is None:
                return
            sub.status = "canceled"
            sub.updated_at = utcnow()
        logger.info("Subscription %s canceled", remote["id"])

    @staticmethod
    def _by_subscription_id(session: Session, subscription_id: str) -> Optional[Subscription]:
        sub = (session.query(Subscription)
                      .filter(Subscription.stripe_subscription_id == subscription_id)
                      .one_or_none())
        if sub is None:
            logger.warning("No local subscription for Stripe subscription %s", subscription_id)
        return sub
