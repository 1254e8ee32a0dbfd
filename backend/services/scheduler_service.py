"""
Background scheduler service for periodic tasks.
Refreshes the satellite catalog from CelesTrak and settles ended auctions.
"""
import logging
from dataclasses import dataclass, replace
from datetime import datetime
from threading import Lock
from typing import Optional, Tuple

from apscheduler.schedulers.background import BackgroundScheduler

from config import Config

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler(daemon=True)

# Track update statistics
update_stats = {
    'last_update': None,
    'total_updates': 0,
    'failed_updates': 0,
    'last_auction_check': None,
}


@dataclass(frozen=True)
class RefreshParameters:
    """
    Inputs of the periodic catalog refresh. Jobs read one snapshot per
    tick; callers swap in a new snapshot with update_parameters().
    """
    sources: Optional[Tuple] = None  # None: Config.TLE_SOURCES


_parameters = RefreshParameters()
_parameters_lock = Lock()
_app = None


def get_parameters() -> RefreshParameters:
    return _parameters


def update_parameters(**changes) -> RefreshParameters:
    """Replace the refresh parameters; running jobs keep their snapshot."""
    global _parameters
    with _parameters_lock:
        _parameters = replace(_parameters, **changes)
    return _parameters


def refresh_catalog_job():
    """
    Background job to reload every TLE source.
    """
    from services.catalog_service import catalog_service

    params = get_parameters()
    timestamp = datetime.utcnow().strftime('%Y-%m-%d %H:%M:%S UTC')
    logger.info(f"Starting catalog refresh at {timestamp}")

    try:
        catalog = catalog_service.refresh(params.sources)
    except Exception:
        update_stats['failed_updates'] += 1
        logger.exception("Catalog refresh failed")
        return

    update_stats['last_update'] = timestamp
    update_stats['total_updates'] += 1
    logger.info(f"Catalog refresh complete: {len(catalog)} satellites")


def close_auctions_job():
    """
    Settle auctions whose end time has passed.
    """
    from services.booking_service import booking_service

    if _app is None:
        logger.warning("Auction check skipped: scheduler has no application")
        return

    with _app.app_context():
        try:
            result = booking_service.close_auctions()
        except Exception:
            logger.exception("Auction check failed")
            return

    update_stats['last_auction_check'] = datetime.utcnow().strftime('%Y-%m-%d %H:%M:%S UTC')
    if result['won'] or result['cancelled']:
        logger.info(f"Auctions closed: {result['won']} won, {result['cancelled']} cancelled")


def get_scheduler_status():
    """Get current scheduler status and statistics."""
    return {
        'running': scheduler.running,
        'last_update': update_stats['last_update'],
        'total_updates': update_stats['total_updates'],
        'failed_updates': update_stats['failed_updates'],
        'last_auction_check': update_stats['last_auction_check'],
        'jobs': [
            {
                'id': job.id,
                'next_run': str(job.next_run_time) if getattr(job, 'next_run_time', None) else None,
                'trigger': str(job.trigger)
            }
            for job in scheduler.get_jobs()
        ]
    }


def initialize_scheduler(app):
    """
    Initialize and start the background scheduler.

    Schedule:
    - Every CATALOG_REFRESH_HOURS: full catalog refresh
    - Every AUCTION_CHECK_SECONDS: close ended auctions

    Args:
        app: Flask application instance
    """
    global _app
    _app = app

    scheduler.add_job(
        refresh_catalog_job,
        'interval',
        hours=app.config.get('CATALOG_REFRESH_HOURS', Config.CATALOG_REFRESH_HOURS),
        id='catalog_refresh',
        replace_existing=True
    )

    scheduler.add_job(
        close_auctions_job,
        'interval',
        seconds=app.config.get('AUCTION_CHECK_SECONDS', Config.AUCTION_CHECK_SECONDS),
        id='auction_close',
        replace_existing=True
    )

    scheduler.start()
    logger.info(
        f"Scheduler started: catalog refresh every {Config.CATALOG_REFRESH_HOURS}h, "
        f"auction check every {Config.AUCTION_CHECK_SECONDS}s"
    )


def shutdown_scheduler():
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler shutdown complete")


def trigger_manual_update() -> bool:
    """
    Trigger an immediate catalog refresh.

    Returns:
        True if the refresh was queued on the running scheduler, False if
        it ran synchronously because the scheduler is stopped
    """
    if scheduler.running:
        scheduler.add_job(
            refresh_catalog_job,
            'date',
            id='manual_update',
            replace_existing=True
        )
        return True

    refresh_catalog_job()
    return False
