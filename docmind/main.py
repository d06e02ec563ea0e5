"""Main Quart application for DocMind."""
import logging
from typing import Optional

from pydantic import ValidationError
from quart import Blueprint, Quart, Response, current_app, jsonify, render_template, request
import structlog

from docmind import config
from docmind.errors import DocMindError, PDFParseError, RateLimitError
from docmind.messages import ChatRequest
from docmind.services import Services, build_services

logger = structlog.get_logger()

OVERLOADED_MESSAGE = (
    "The system is overloaded (too many requests). Please wait a few seconds."
)

bp = Blueprint("docmind", __name__)


def configure_logging() -> None:
    """Configure structured logging."""
    logging.basicConfig(format="%(message)s", level=config.LOG_LEVEL)
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


def get_services() -> Services:
    return current_app.extensions["docmind"]


@bp.route("/")
async def index():
    """Render the chat interface."""
    return await render_template(
        "chat.html",
        static_version=config.STATIC_VERSION,
        chat_model=config.CHAT_MODEL,
    )


@bp.route("/api/chat", methods=["POST"])
async def chat():
    """Stream an answer to a conversation, grounded in ingested documents.

    Expects JSON body:
    {
        "messages": [{"role": "user", "content": "question"}, ...]
    }

    Returns a ``text/plain`` stream with the assistant's answer.
    """
    data = await request.get_json(silent=True)

    try:
        chat_request = ChatRequest.model_validate(data or {})
    except ValidationError as e:
        errors = [err["msg"] for err in e.errors()]
        logger.warning("invalid_chat_request", errors=errors)
        return jsonify({"error": "Invalid chat request", "details": errors}), 400

    last = chat_request.last_message
    if last.role == "user" and not last.content.strip():
        return jsonify({"error": "Message cannot be empty"}), 400

    # Limit message length (basic security)
    if len(last.content) > config.MAX_MESSAGE_CHARS:
        return jsonify({
            "error": f"Message too long (max {config.MAX_MESSAGE_CHARS} characters)"
        }), 400

    logger.info(
        "chat_request_received",
        message_count=len(chat_request.messages),
        last_role=last.role,
        message_length=len(last.content),
    )

    stream = get_services().chat.answer_stream(chat_request.messages)

    # Pull the first token before answering so provider errors map to a status
    try:
        first: Optional[str] = await stream.__anext__()
    except StopAsyncIteration:
        first = None
    except RateLimitError:
        return Response(OVERLOADED_MESSAGE, status=429, content_type="text/plain; charset=utf-8")
    except Exception as e:
        logger.error("chat_endpoint_error", error=str(e), error_type=type(e).__name__)
        return jsonify({"error": "Internal server error."}), 500

    async def body():
        if first:
            yield first.encode("utf-8")
        try:
            async for token in stream:
                yield token.encode("utf-8")
        except DocMindError as e:
            # Headers are already sent; end the stream early
            logger.error("chat_stream_interrupted", error=str(e), error_type=type(e).__name__)

    return Response(body(), content_type="text/plain; charset=utf-8")


@bp.route("/api/ingest", methods=["POST"])
async def ingest():
    """Ingest an uploaded PDF into the vector store.

    Expects multipart form data with a ``file`` field.

    Returns JSON:
    {
        "success": true,
        "count": 12,
        "filename": "manual.pdf"
    }
    """
    files = await request.files
    upload = files.get("file")

    if upload is None or not upload.filename:
        return jsonify({"error": "No file uploaded"}), 400

    data = upload.read()
    if not data:
        return jsonify({"error": "Uploaded file is empty"}), 400

    filename = upload.filename
    logger.info("ingest_request_received", filename=filename, size_bytes=len(data))

    try:
        result = await get_services().ingest.ingest_pdf(data, filename)
    except PDFParseError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        logger.error("ingest_endpoint_error", filename=filename, error=str(e), error_type=type(e).__name__)
        return jsonify({"error": str(e)}), 500

    if result.count == 0:
        return jsonify({"error": "No text could be extracted from the PDF"}), 422

    return jsonify({"success": True, "count": result.count, "filename": result.filename})


@bp.route("/api/seed", methods=["GET"])
async def seed():
    """Store a fixed set of sample sentences in the vector store."""
    try:
        count = await get_services().ingest.seed()
    except Exception as e:
        logger.error("seed_endpoint_error", error=str(e), error_type=type(e).__name__)
        return jsonify({"error": "Failed to seed the vector store"}), 500

    return jsonify({"message": "Seed completed successfully!", "count": count})


@bp.route("/health/ready")
async def health_ready():
    """Readiness probe - check if app can serve requests.

    Checks:
    - Pinecone index is reachable
    - Groq is reachable and serves the chat model
    """
    services = get_services()
    checks = {
        "status": "healthy",
        "vector_store": False,
        "llm": False,
        "models": False,
    }

    try:
        stats = await services.vector_store.describe()
        checks["vector_store"] = True
        checks["vector_count"] = stats.get("vector_count", 0)

        models = await services.llm.list_models()
        checks["llm"] = True

        if services.llm.model in models:
            checks["models"] = True
        else:
            checks["status"] = "unhealthy"
            checks["error"] = f"Missing chat model: {services.llm.model}"

        status_code = 200 if checks["status"] == "healthy" else 503
        return jsonify(checks), status_code

    except Exception as e:
        logger.error("health_check_failed", error=str(e))
        checks["status"] = "unhealthy"
        checks["error"] = str(e)
        return jsonify(checks), 503


@bp.route("/health/live")
async def health_live():
    """Liveness probe - check if app is running."""
    return jsonify({"status": "alive"}), 200


@bp.app_errorhandler(404)
async def not_found(error):
    """Handle 404 errors."""
    return jsonify({"error": "Not found"}), 404


@bp.app_errorhandler(413)
async def payload_too_large(error):
    """Handle uploads above MAX_UPLOAD_BYTES."""
    return jsonify({"error": "File too large"}), 413


@bp.app_errorhandler(500)
async def internal_error(error):
    """Handle 500 errors."""
    logger.error("internal_server_error", error=str(error))
    return jsonify({"error": "Internal server error"}), 500


def create_app(services: Optional[Services] = None) -> Quart:
    """Create the Quart application.

    Args:
        services: Service handles to use (built from config if omitted)
    """
    configure_logging()

    app = Quart(
        __name__,
        template_folder=str(config.TEMPLATES_DIR),
        static_folder=str(config.STATIC_DIR),
    )
    app.config["MAX_CONTENT_LENGTH"] = config.MAX_UPLOAD_BYTES
    app.extensions["docmind"] = services or build_services()
    app.register_blueprint(bp)

    logger.info("app_created", chat_model=config.CHAT_MODEL)
    return app


if __name__ == "__main__":
    # For development - run with hypercorn "docmind.main:create_app()" in production
    create_app().run(host="0.0.0.0", port=5000, debug=True)
