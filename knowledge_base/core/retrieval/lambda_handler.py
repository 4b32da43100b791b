"""
Lambda handler for Bedrock agent hybrid retrieval.

The agent calls this function with the query text and optional metadata
filters; results are returned as ``<search_results>`` markup the agent can
cite. Any failure is reported with ``responseState=FAILURE`` rather than a
partial answer.

Environment variables:
- MONGODB_CONN_STRING / MONGODB_CONN_SECRET_ARN: Atlas connection
- MONGODB_VECTOR_INDEX, MONGODB_TEXT_INDEX: Atlas search index names
- RETRIEVAL_K, RETRIEVAL_TIMEOUT_SECONDS: Result count and deadline
- LOG_LEVEL: Logging level

Dependencies: hybrid_retriever, filters, models.agent_event
System role: Lambda entry point for agent retrieval
"""

import asyncio
import json
import logging
from functools import lru_cache
from typing import Any, Dict

from knowledge_base.boundary.db import get_chunk_store
from knowledge_base.boundary.embeddings import get_embedding_client
from knowledge_base.configs import get_settings
from knowledge_base.core.exceptions import KnowledgeBaseException
from knowledge_base.core.retrieval.filters import merge_filters, parse_filter_json
from knowledge_base.core.retrieval.hybrid_retriever import HybridRetriever
from knowledge_base.core.retrieval.models import BedrockAgentEvent, BedrockAgentResponse
from knowledge_base.models import QueryResult
from knowledge_base.observability import configure_logging

logger = logging.getLogger(__name__)


@lru_cache
def get_retriever() -> HybridRetriever:
    """Build the retriever once per container."""
    settings = get_settings()
    return HybridRetriever(
        store=get_chunk_store(),
        embedder=get_embedding_client(),
        settings=settings.retrieval,
    )


def format_search_results(results: list[QueryResult]) -> str:
    """
    Render results for the agent.

    Each result is its JSON payload (no embedding) followed by its source
    address.
    """
    rendered = "".join(
        f"<search_result>{json.dumps(result.to_payload())}<source>{result.source or ''}</source></search_result>"
        for result in results
    )
    return f"<search_results>{rendered}</search_results>"


async def answer(event: BedrockAgentEvent, retriever: HybridRetriever) -> BedrockAgentResponse:
    """
    Answer one agent function call.

    Call-level filters win over session-level filters on key collision.
    """
    try:
        filters = merge_filters(
            parse_filter_json(event.session_filter_json),
            parse_filter_json(event.call_filter_json),
        )
        results = await retriever.query(event.query_text, filters)
    except KnowledgeBaseException as e:
        logger.error(
            "answer - %s: %s",
            type(e).__name__,
            e,
            extra={"session_id": event.session_id, "retryable": e.retryable},
        )
        return BedrockAgentResponse.text(event, f"Retrieval failed: {e.message}", response_state="FAILURE")

    logger.info(
        "answer - Returning results",
        extra={"session_id": event.session_id, "result_count": len(results)},
    )
    return BedrockAgentResponse.text(event, format_search_results(results))


def handler(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """
    Handle a Bedrock agent function call.

    Args:
        event: Agent function event
        context: Lambda context

    Returns:
        dict: Agent function response
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    agent_event = BedrockAgentEvent.model_validate(event)
    logger.info(
        "handler - Received agent call",
        extra={
            "action_group": agent_event.action_group,
            "function_name": agent_event.function_name,
            "session_id": agent_event.session_id,
        },
    )

    response = asyncio.run(answer(agent_event, get_retriever()))
    return response.to_dict()
