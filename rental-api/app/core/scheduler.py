"""
APScheduler for background jobs
- Overdue rental watch (expired rentals, inside or beyond the 24h grace window)
"""
import logging
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.core.config import settings

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler = BackgroundScheduler()


def check_overdue_rentals(session_factory=None, now=None) -> dict:
    """
    Log active rentals past their expiry. Overdue is derived, never stored,
    so this job only reports.
    """
    from app.core.db import SessionLocal
    from app.models.rental import Rental
    from app.services.rental_service import calculate_remaining_time

    db = (session_factory or SessionLocal)()
    summary = {"within_grace": [], "beyond_grace": []}
    try:
        active = db.query(Rental).filter(Rental.status == "active").all()

        for rental in active:
            remaining = calculate_remaining_time(rental, now)
            if remaining["overdue_within_grace"]:
                summary["within_grace"].append(rental.ticket_number)
                logger.warning(
                    f"[Scheduler] Ticket #{rental.ticket_number} ({rental.renter_nickname}) expired, "
                    f"{remaining['grace_hours_left']}h left to return"
                )
            elif remaining["overdue_beyond_grace"]:
                summary["beyond_grace"].append(rental.ticket_number)
                logger.error(
                    f"[Scheduler] Ticket #{rental.ticket_number} ({rental.renter_nickname}) overdue beyond grace window"
                )

        logger.info(
            f"[Scheduler] Overdue check: {len(active)} active, "
            f"{len(summary['within_grace'])} in grace, {len(summary['beyond_grace'])} beyond"
        )
        return summary
    finally:
        db.rollback()
        db.close()


def setup_jobs():
    """Configure scheduled jobs"""
    scheduler.add_job(
        check_overdue_rentals,
        trigger=IntervalTrigger(minutes=settings.OVERDUE_CHECK_INTERVAL_MINUTES),
        id="overdue_rentals_check",
        name="Overdue rentals check",
        replace_existing=True,
    )

    logger.info("[Scheduler] Jobs configured (1 job)")


def start_scheduler():
    """Start the scheduler on app startup"""
    if not scheduler.running:
        setup_jobs()
        scheduler.start()
        logger.info("[Scheduler] Started")


def stop_scheduler():
    """Stop the scheduler cleanly"""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("[Scheduler] Stopped")
