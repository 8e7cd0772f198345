"""AWS Lambda handler for the Event Radar reconciliation pass."""
import json
import logging
import os
import time
from datetime import datetime, timezone
from typing import Dict, Any

from processor.errors import InvalidInput
from query.filter_engine import filter_events
from storage.event_store import EventStore
from storage import snapshot


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


def _env_int(name: str, default: int, logger: logging.Logger) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid {name}={raw!r}, using default {default}")
        return default


def _is_scheduled(event: Dict[str, Any]) -> bool:
    return event.get('source') == 'aws.events'


def _response(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    return {'statusCode': status_code, 'body': json.dumps(body)}


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Run one reconciliation pass over the collection carried in the payload.

    Args:
        event: Payload with collection, events, activity_log, filters and now
        context: Lambda context object

    Returns:
        Response dict with statusCode and the reconciled view
    """
    log_level = os.environ.get('LOG_LEVEL', 'INFO')

    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    auto_update = _env_flag('AUTO_UPDATE_ENABLED', 'true')
    refresh_interval = _env_int('REFRESH_INTERVAL_MINUTES', 30, logger)

    start_time = time.time()
    logger.info(
        "Lambda execution started",
        extra={
            'auto_update': auto_update,
            'refresh_interval_minutes': refresh_interval
        }
    )

    if _is_scheduled(event) and not auto_update:
        logger.info("Auto-update disabled, skipping scheduled reconciliation")
        return _response(200, {
            'message': 'Auto-update disabled',
            'skipped': True,
            'refresh_interval_minutes': refresh_interval
        })

    try:
        # Decode the host-owned snapshot and the incoming batch
        try:
            now_value = event.get('now')
            now = (
                snapshot.parse_timestamp(now_value) if now_value
                else datetime.now(timezone.utc)
            )
            records = snapshot.items_to_records(event.get('collection'))
            activity_log = snapshot.items_to_log(event.get('activity_log'))
            candidates, rejected = snapshot.items_to_candidates(event.get('events'))
            criteria = snapshot.criteria_from_dict(event.get('filters'))
        except InvalidInput as e:
            logger.error(
                f"Invalid reconciliation payload: {str(e)}",
                extra={'error_type': type(e).__name__}
            )
            duration = time.time() - start_time
            return _response(400, {
                'message': 'Invalid reconciliation payload',
                'error': str(e),
                'error_type': type(e).__name__,
                'duration_seconds': round(duration, 2)
            })

        store = EventStore(records=records, activity_log=activity_log)
        summary = store.sync(candidates, now, rejected=rejected)
        collection = store.snapshot()
        visible = filter_events(collection, criteria)
        stats = store.stats()

        duration = time.time() - start_time

        logger.info(
            "Lambda execution completed successfully",
            extra={
                'duration_seconds': round(duration, 2),
                'events_added': summary.added,
                'events_updated': summary.updated,
                'events_expired': summary.expired_total,
                'errors': summary.errors
            }
        )

        return _response(200, {
            'message': 'Reconciliation completed successfully',
            'summary': snapshot.summary_to_dict(summary),
            'stats': snapshot.stats_to_dict(stats),
            'events': [snapshot.record_to_item(record) for record in visible],
            'collection': [snapshot.record_to_item(record) for record in collection],
            'activity_log': snapshot.log_to_items(store.activity_log),
            'last_updated': now.isoformat(),
            'refresh_interval_minutes': refresh_interval,
            'duration_seconds': round(duration, 2)
        })

    except Exception as e:
        duration = time.time() - start_time

        logger.error(
            f"Lambda execution failed: {str(e)}",
            extra={
                'duration_seconds': round(duration, 2),
                'error_type': type(e).__name__
            },
            exc_info=True
        )

        return _response(500, {
            'message': 'Reconciliation failed',
            'error': str(e),
            'error_type': type(e).__name__,
            'duration_seconds': round(duration, 2)
        })
