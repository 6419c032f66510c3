"""Main Quart application for the talk question-answering API."""
from pydantic import ValidationError
from quart import Quart, jsonify, request
import structlog

from talkrag import config
from talkrag.config import Settings
from talkrag.errors import InvalidRequest, TalkRagError
from talkrag.logging_config import configure_logging
from talkrag.rag.query import QueryPipeline
from talkrag.schemas import PromptRequest, PromptResponse, StatsResponse

configure_logging(config.LOG_LEVEL)

logger = structlog.get_logger()

app = Quart(__name__)
app.config["SETTINGS"] = None
app.config["QUERY_PIPELINE"] = None


@app.before_serving
async def startup():
    """Build the query pipeline from the environment.

    Raises ConfigurationError (and so refuses to serve) when a required
    credential is missing. A pipeline installed beforehand is kept as is.
    """
    if app.config["QUERY_PIPELINE"] is not None:
        return

    settings = Settings.from_env()
    app.config["SETTINGS"] = settings
    app.config["QUERY_PIPELINE"] = QueryPipeline.from_settings(settings)

    logger.info(
        "query_pipeline_ready",
        index=settings.pinecone_index_name,
        chat_model=settings.chat_model,
        top_k=settings.top_k,
    )


@app.route("/api/prompt", methods=["POST"])
async def prompt():
    """Answer a question from the indexed talks.

    Expects JSON body:
    {
        "question": "user question text"
    }

    Returns JSON:
    {
        "response": "model answer",
        "context": [{"talk_id": ..., "chunk": ..., "score": ...}, ...],
        "Augmented_prompt": {"System": "...", "User": "..."}
    }
    """
    data = await request.get_json(silent=True)

    if not isinstance(data, dict) or "question" not in data:
        logger.warning("missing_question_field")
        return jsonify({"error": "Missing 'question' field in JSON body"}), 400

    try:
        body = PromptRequest.model_validate(data)
    except ValidationError as e:
        logger.warning("invalid_prompt_request", error_count=e.error_count())
        return jsonify({"error": "Missing 'question' field in JSON body"}), 400

    pipeline: QueryPipeline = app.config["QUERY_PIPELINE"]
    if pipeline is None:
        logger.error("query_pipeline_not_initialized")
        return jsonify({"error": "Internal server error"}), 500

    try:
        result = await pipeline.answer(body.question)

    except InvalidRequest as e:
        return jsonify({"error": str(e)}), 400

    except TalkRagError as e:
        logger.error("prompt_failed", error=str(e), error_type=type(e).__name__)
        return jsonify({"error": "Internal server error"}), 500

    except Exception as e:
        logger.exception("prompt_endpoint_error", error=str(e), error_type=type(e).__name__)
        return jsonify({"error": "Internal server error"}), 500

    logger.info(
        "prompt_response_sent",
        context_chunks=len(result.context),
        response_length=len(result.response),
    )

    return jsonify(PromptResponse.from_result(result).model_dump(by_alias=True))


@app.route("/api/stats", methods=["GET"])
async def stats():
    """Report the retrieval configuration constants."""
    settings = app.config["SETTINGS"]
    if settings is not None:
        body = StatsResponse(
            chunk_size=settings.chunk_size,
            overlap_ratio=settings.overlap_ratio,
            top_k=settings.top_k,
        )
    else:
        body = StatsResponse(
            chunk_size=config.CHUNK_SIZE,
            overlap_ratio=config.CHUNK_OVERLAP / config.CHUNK_SIZE,
            top_k=config.RETRIEVAL_TOP_K,
        )
    return jsonify(body.model_dump())


@app.route("/health/ready")
async def health_ready():
    """Readiness probe - the query pipeline has been built."""
    if app.config["QUERY_PIPELINE"] is None:
        return jsonify({"status": "unhealthy", "error": "Query pipeline not initialized"}), 503
    return jsonify({"status": "healthy"}), 200


@app.route("/health/live")
async def health_live():
    """Liveness probe - check if app is running."""
    return jsonify({"status": "alive"}), 200


@app.errorhandler(404)
async def not_found(error):
    """Handle 404 errors."""
    return jsonify({"error": "Not found"}), 404


@app.errorhandler(500)
async def internal_error(error):
    """Handle 500 errors."""
    logger.error("internal_server_error", error=str(error))
    return jsonify({"error": "Internal server error"}), 500


if __name__ == "__main__":
    # For development - use scripts/serve.py (hypercorn) otherwise
    app.run(host="0.0.0.0", port=5000, debug=True)
