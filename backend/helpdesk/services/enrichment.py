# =============================================================================
# HELPDESK API - AI ENRICHMENT QUEUE
# =============================================================================
# New tickets are analyzed in the background after the ticket is committed.
# The ticket creation response never waits for, nor depends on, this job.
# Failures are logged and dropped (no retries).
#
# - SchedulerEnrichmentQueue: APScheduler one-shot jobs (production)
# - SynchronousEnrichmentQueue: runs the job inline (tests)
# =============================================================================

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED

from ..auth.models import Actor
from ..config import config
from ..database import db_session
from ..exceptions import ForbiddenError
from . import policy

logger = logging.getLogger(__name__)

HISTORY_MESSAGES = 10


# =============================================================================
# JOB
# =============================================================================

def run_enrichment(ticket_id: int, title: str, description: str, analyzer=None) -> bool:
    """
    Analyze a ticket and write back the four AI columns.

    Nothing is written when the analyzer returned its defaults, so a failed
    analysis leaves the ticket untouched.

    Returns:
        True if the AI columns were written
    """
    if analyzer is None:
        from .registry import get_ai_service
        analyzer = get_ai_service()

    analysis = analyzer.analyze(title, description)
    if analysis.fallback:
        logger.warning(f"AI enrichment of ticket {ticket_id} skipped: analysis unavailable")
        return False

    columns = analysis.to_columns()
    with db_session() as db:
        db.execute(
            f"UPDATE tickets SET {', '.join(f'{c} = ?' for c in columns)} WHERE id = ?",
            [*columns.values(), ticket_id]
        )

    logger.info(
        f"Ticket {ticket_id} enriched: sentiment={analysis.sentiment}, "
        f"priority={analysis.suggested_priority}, category={analysis.suggested_category}"
    )
    return True


# =============================================================================
# QUEUES
# =============================================================================

class EnrichmentQueue(ABC):
    """Interface: submit(ticket_id, title, description) returns immediately."""

    @abstractmethod
    def submit(self, ticket_id: int, title: str, description: str) -> None:
        pass

    def shutdown(self) -> None:
        pass


class SynchronousEnrichmentQueue(EnrichmentQueue):
    """Runs the job inline; errors are logged and dropped like in production."""

    def __init__(self, analyzer=None):
        self.analyzer = analyzer
        self.submitted = []

    def submit(self, ticket_id: int, title: str, description: str) -> None:
        self.submitted.append(ticket_id)
        try:
            run_enrichment(ticket_id, title, description, analyzer=self.analyzer)
        except Exception as e:
            logger.error(f"AI enrichment of ticket {ticket_id} failed: {e}")


def _job_listener(event):
    """Failure channel of the background jobs."""
    if event.exception:
        logger.error(f"Enrichment job {event.job_id} failed: {event.exception}")
    else:
        logger.debug(f"Enrichment job {event.job_id} completed")


class SchedulerEnrichmentQueue(EnrichmentQueue):
    """
    One-shot APScheduler jobs on a BackgroundScheduler.

    The scheduler is started on first submit and stopped by shutdown().
    """

    def __init__(self):
        self._scheduler: Optional[BackgroundScheduler] = None

    def _get_scheduler(self) -> BackgroundScheduler:
        if self._scheduler is None:
            self._scheduler = BackgroundScheduler(
                job_defaults={
                    'coalesce': False,
                    'max_instances': 1,
                    'misfire_grace_time': 300
                }
            )
            self._scheduler.add_listener(_job_listener, EVENT_JOB_ERROR | EVENT_JOB_EXECUTED)
            self._scheduler.start()
            logger.info("Enrichment scheduler started")
        return self._scheduler

    def submit(self, ticket_id: int, title: str, description: str) -> None:
        if not config.AI_ENRICHMENT_ENABLED:
            logger.debug(f"AI enrichment disabled, ticket {ticket_id} not queued")
            return
        try:
            self._get_scheduler().add_job(
                run_enrichment,
                trigger=DateTrigger(run_date=datetime.now()),
                args=[ticket_id, title, description],
                id=f"enrich_ticket_{ticket_id}",
                name=f"AI enrichment ticket {ticket_id}",
                replace_existing=True
            )
        except Exception as e:
            logger.error(f"Could not queue AI enrichment of ticket {ticket_id}: {e}")

    def shutdown(self) -> None:
        if self._scheduler is not None and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Enrichment scheduler stopped")
        self._scheduler = None


# =============================================================================
# REPLY SUGGESTION
# =============================================================================

def suggest_reply(db, actor: Actor, ticket_id: int, analyzer) -> str:
    """
    AI draft reply for staff, from the ticket and its latest messages.

    Returns:
        Suggested text ("" when the AI is unavailable)
    """
    from .tickets.queries import find_ticket

    ticket = find_ticket(db, ticket_id)
    if not policy.can_view_internal(actor):
        raise ForbiddenError(policy.ACCESS_DENIED)

    rows = db.execute(
        "SELECT sender_role, content FROM ticket_messages "
        "WHERE ticket_id = ? ORDER BY created_at DESC, id DESC LIMIT ?",
        (ticket_id, HISTORY_MESSAGES)
    ).fetchall()
    history = "\n".join(f"{row['sender_role']}: {row['content']}" for row in reversed(rows))

    return analyzer.suggest_response(ticket['title'], ticket['description'], history)
