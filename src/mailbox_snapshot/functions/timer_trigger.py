"""Timer trigger blueprint — scheduled mailbox snapshot into blob storage."""

import logging

import azure.functions as func

from mailbox_snapshot.config import load_config
from mailbox_snapshot.export.sink import blob_snapshot_writer_from_config
from mailbox_snapshot.orchestration.extractor import snapshot_extractor_from_config

logger = logging.getLogger(__name__)

bp = func.Blueprint()


@bp.timer_trigger(
    schedule="0 0 2 * * *",
    arg_name="timer",
    run_on_startup=False,
)
def timer_trigger(timer: func.TimerRequest) -> None:
    """Scheduled trigger that exports a mailbox snapshot.

    Runs daily at 02:00 UTC. Loads the folder hierarchy, streams every
    non-junk message and uploads the records as one JSON Lines blob. A failed
    run uploads nothing.
    """
    logger.info("Timer trigger fired")

    try:
        if timer.past_due:
            logger.warning("Timer trigger is past due")

        config = load_config()
        extractor = snapshot_extractor_from_config(config)
        writer = blob_snapshot_writer_from_config(config)
        result = extractor.run(writer.write)
        writer.close()
        if not result.complete:
            logger.warning(
                "Snapshot skipped %d message(s) in unknown folders", len(result.unresolved_ids)
            )
        logger.info(
            "Snapshot complete — %d message(s) across %d folder(s) written to %s",
            result.message_count,
            result.folder_count,
            writer.blob_name,
        )

    except Exception:
        logger.exception("Timer trigger failed")
        raise
