"""HTTP trigger blueprint — health check and manual snapshot endpoints."""

import json
import logging

import azure.functions as func

from mailbox_snapshot import __version__
from mailbox_snapshot.config import load_config
from mailbox_snapshot.export.sink import blob_snapshot_writer_from_config
from mailbox_snapshot.orchestration.extractor import (
    ExtractionError,
    snapshot_extractor_from_config,
)

logger = logging.getLogger(__name__)

bp = func.Blueprint()


def _json_response(body: dict, status_code: int) -> func.HttpResponse:  # type: ignore[type-arg]
    return func.HttpResponse(
        json.dumps(body), status_code=status_code, mimetype="application/json"
    )


@bp.route(route="health", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def health_check(req: func.HttpRequest) -> func.HttpResponse:
    """Health check endpoint.

    Returns service status and version.
    """
    logger.info("[health_check] health check requested")

    try:
        return _json_response({"status": "ok", "version": __version__}, 200)

    except Exception:
        logger.error("[health_check] health check failed", exc_info=True)
        return _json_response({"status": "error", "message": "Internal server error"}, 500)


@bp.route(route="trigger", methods=["POST"], auth_level=func.AuthLevel.FUNCTION)
def manual_trigger(req: func.HttpRequest) -> func.HttpResponse:
    """Manual trigger endpoint — runs a snapshot on demand.

    Requires a function key for authentication. Executes the same logic
    as the timer trigger but returns the run summary in the HTTP response.
    A failed phase is reported by name with status 502.
    """
    logger.info("[manual_trigger] manual trigger requested")

    try:
        config = load_config()
        extractor = snapshot_extractor_from_config(config)
        writer = blob_snapshot_writer_from_config(config)
        result = extractor.run(writer.write)
        writer.close()

        logger.info(
            "[manual_trigger] snapshot complete; blob:%s;message_count:%d;unresolved:%d",
            writer.blob_name,
            result.message_count,
            len(result.unresolved_ids),
        )
        body = {
            "status": "ok" if result.complete else "partial",
            "blob": writer.blob_name,
            "folders": result.folder_count,
            "messages": result.message_count,
            "unresolved": result.unresolved_ids,
        }
        return _json_response(body, 200)

    except ExtractionError as exc:
        logger.error("[manual_trigger] extraction failed; phase:%s", exc.phase, exc_info=True)
        return _json_response({"status": "error", "phase": exc.phase, "message": str(exc)}, 502)

    except Exception:
        logger.error("[manual_trigger] manual trigger failed", exc_info=True)
        return _json_response({"status": "error", "message": "Internal server error"}, 500)
