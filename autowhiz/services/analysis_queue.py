"""
Hands newly created analyses to the external analysis worker.

Dispatch happens after the analysis row is committed and is best effort: a broker
outage leaves the analysis `pending` for the worker's sweep instead of failing the
user's request.
"""
import logging

from autowhiz.core.config import settings

logger = logging.getLogger(__name__)

PROCESS_ANALYSIS_TASK = "process_analysis"


def enqueue_analysis(analysis_id: str) -> bool:
    if not settings.CELERY_BROKER_URL:
        logger.info("[Analysis queue] No broker configured; analysis %s left pending", analysis_id)
        return False

    from autowhiz.celery_app import celery_app

    try:
        celery_app.send_task(PROCESS_ANALYSIS_TASK, args=[analysis_id])
    except Exception as e:
        logger.error("[Analysis queue] Failed to dispatch analysis %s: %s", analysis_id, e)
        return False

    logger.info("[Analysis queue] Dispatched analysis %s", analysis_id)
    return True
