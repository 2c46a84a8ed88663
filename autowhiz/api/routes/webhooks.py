"""
Stripe webhook endpoint. Register https://<api-host>/webhooks/stripe in the Stripe dashboard.
"""
import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from autowhiz.core.errors import AppError
from autowhiz.db.session import get_db
from autowhiz.services.billing_reconciler import process_event, verify_event

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/stripe")
async def stripe_webhook(request: Request, db: Session = Depends(get_db)):
    payload = await request.body()
    event = verify_event(payload, request.headers.get("stripe-signature"))

    logger.info("[Stripe webhook] Received %s (%s)", event.get("type"), event.get("id"))
    try:
        process_event(db, event)
    except AppError:
        raise
    except Exception:
        # Non-2xx makes Stripe retry the delivery
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Webhook processing failed"},
        )
    return {"received": True}
