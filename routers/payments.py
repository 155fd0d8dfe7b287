import logging

from fastapi import APIRouter, Depends, Query

import config
import ledger
from checkout import get_checkout_provider
from db import SessionDep
from schemas import CheckoutCreate, CheckoutRead, PaymentPage, PaymentResult
from .auth import AdminDep, CallerEmailDep

router = APIRouter(tags=["payments"])
logger = logging.getLogger(__name__)


@router.post("/create-payment-checkout", response_model=CheckoutRead)
def create_payment_checkout(
    checkout_in: CheckoutCreate,
    email: CallerEmailDep,
    provider=Depends(get_checkout_provider),
):
    """
    Start a Stripe Checkout for a whole-unit donation; the client
    redirects to the returned URL.
    """
    domain = config.SITE_DOMAIN.rstrip("/")
    url = provider.create_checkout(
        amount=checkout_in.donate_amount * 100,
        payer_email=checkout_in.donor_email or email,
        success_url=f"{domain}/success-payment?session_id={{CHECKOUT_SESSION_ID}}",
        cancel_url=f"{domain}/payment-cancelled",
    )
    logger.info("Checkout of %s opened for %s", checkout_in.donate_amount,
                checkout_in.donor_email or email)
    return CheckoutRead(url=url)


@router.get("/success-payment", response_model=PaymentResult)
def finalize_payment(
    session: SessionDep,
    session_id: str = Query(min_length=1),
    provider=Depends(get_checkout_provider),
):
    """
    Landing point of the success redirect. Safe to hit any number of
    times: one checkout session yields at most one payment record.
    """
    outcome = provider.retrieve_outcome(session_id)
    recorded = ledger.record_payment(session, outcome)
    return PaymentResult(success=recorded, transaction_id=outcome.transaction_id if recorded else None)


@router.get("/payments", response_model=PaymentPage)
def list_payments(
    session: SessionDep,
    admin: AdminDep,
    page: int = Query(1, ge=1),
    size: int = Query(config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
):
    payments, total = ledger.page_payments(session, page, size)
    return PaymentPage(payments=payments, total=total)
