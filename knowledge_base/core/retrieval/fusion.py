"""
Reciprocal rank fusion.

Two renditions of the same scoring rule, ``weight / (rank + rank_constant)``
per branch, summed across branches:

- ``build_hybrid_search_pipeline`` emits a MongoDB Atlas aggregation that
  runs ``$vectorSearch`` and ``$search`` and fuses them server-side via
  ``$unionWith`` in one round trip;
- ``reciprocal_rank_fusion`` merges two already-ranked hit lists in process,
  for stores without a native union primitive.

See https://www.mongodb.com/docs/atlas/atlas-vector-search/tutorials/reciprocal-rank-fusion/

Dependencies: knowledge_base.models
System role: Fusion query builder and scorer for hybrid retrieval
"""

from typing import Any, Iterable

from knowledge_base.models import HybridSearchRequest, QueryResult

RANK_CONSTANT = 60


def rrf_score(rank: int, weight: float, rank_constant: int = RANK_CONSTANT) -> float:
    """Score of a hit at zero-based ``rank`` within one branch."""
    return weight * (1.0 / (rank + rank_constant))


def reciprocal_rank_fusion(
    vector_hits: Iterable[dict[str, Any]],
    text_hits: Iterable[dict[str, Any]],
    k: int,
    vector_weight: float = 0.1,
    fulltext_weight: float = 0.9,
    rank_constant: int = RANK_CONSTANT,
) -> list[QueryResult]:
    """
    Fuse two ranked branches into at most ``k`` results.

    Hits are chunk documents keyed by ``_id`` in branch rank order. A chunk
    present in one branch only scores 0 for the other; duplicates within a
    branch keep their best score. Ordering of equal scores follows first
    appearance (vector branch first) and is not guaranteed across stores.

    Args:
        vector_hits: Vector branch, best first
        text_hits: Full-text branch, best first
        k: Number of fused results to keep
        vector_weight: Weight of the vector branch
        fulltext_weight: Weight of the full-text branch
        rank_constant: RRF smoothing term

    Returns:
        list[QueryResult]: Fused results sorted by score, embeddings stripped
    """
    documents: dict[str, dict[str, Any]] = {}
    vs_scores: dict[str, float] = {}
    fts_scores: dict[str, float] = {}

    for branch, weight, scores in (
        (vector_hits, vector_weight, vs_scores),
        (text_hits, fulltext_weight, fts_scores),
    ):
        for rank, hit in enumerate(branch):
            hit_id = str(hit["_id"])
            documents.setdefault(hit_id, hit)
            score = rrf_score(rank, weight, rank_constant)
            scores[hit_id] = max(scores.get(hit_id, 0.0), score)

    fused = []
    for hit_id, document in documents.items():
        vs_score = vs_scores.get(hit_id, 0.0)
        fts_score = fts_scores.get(hit_id, 0.0)
        fused.append(
            QueryResult(
                id=hit_id,
                text=document.get("text", ""),
                metadata=dict(document.get("metadata", {})),
                vs_score=vs_score,
                fts_score=fts_score,
                score=vs_score + fts_score,
            )
        )

    # sorted() is stable, so ties keep first-appearance order
    fused = sorted(fused, key=lambda result: result.score, reverse=True)
    return fused[:k]


def _rank_stages(score_field: str, weight: float, rank_constant: int) -> list[dict[str, Any]]:
    """Collect a ranked stream, number it, and attach the weighted RRF score."""
    return [
        {"$group": {"_id": None, "docs": {"$push": "$$ROOT"}}},
        {"$unwind": {"path": "$docs", "includeArrayIndex": "rank"}},
        {
            "$addFields": {
                "_id": "$docs._id",
                score_field: {
                    "$multiply": [
                        weight,
                        {"$divide": [1.0, {"$add": ["$rank", rank_constant]}]},
                    ]
                },
            }
        },
    ]


def build_hybrid_search_pipeline(
    request: HybridSearchRequest,
    chunks_collection: str,
    vector_index: str,
    text_index: str,
) -> list[dict[str, Any]]:
    """
    Build the fused ``$vectorSearch`` + ``$search`` aggregation.

    The metadata filter is pushed into each branch: as the ``$vectorSearch``
    pre-filter and as a ``$match`` right after ``$search`` (before its
    ``$limit``), so filtered-out chunks never enter either ranking.

    Args:
        request: Search parameters including the query vector
        chunks_collection: Collection searched by the full-text branch
        vector_index: Atlas Vector Search index name
        text_index: Atlas Search index name

    Returns:
        list[dict]: Aggregation pipeline for the chunks collection
    """
    vector_search: dict[str, Any] = {
        "index": vector_index,
        "path": "embedding",
        "queryVector": request.vector,
        "numCandidates": request.num_candidates,
        "limit": request.k,
    }
    if request.filter:
        vector_search["filter"] = request.filter

    text_branch: list[dict[str, Any]] = [
        {"$search": {"index": text_index, "text": {"query": request.text, "path": "text"}}},
    ]
    if request.filter:
        text_branch.append({"$match": request.filter})
    text_branch.append({"$limit": request.k})
    text_branch.extend(_rank_stages("fts_score", request.fulltext_weight, request.rank_constant))

    return [
        # Vector branch
        {"$vectorSearch": vector_search},
        *_rank_stages("vs_score", request.vector_weight, request.rank_constant),
        # Full-text branch, concatenated onto the vector stream
        {"$unionWith": {"coll": chunks_collection, "pipeline": text_branch}},
        # Fusion: one row per chunk, best score per branch
        {
            "$group": {
                "_id": "$_id",
                "docs": {"$first": "$docs"},
                "vs_score": {"$max": "$vs_score"},
                "fts_score": {"$max": "$fts_score"},
            }
        },
        {
            "$addFields": {
                "docs.vs_score": {"$ifNull": ["$vs_score", 0]},
                "docs.fts_score": {"$ifNull": ["$fts_score", 0]},
            }
        },
        {"$addFields": {"docs.score": {"$add": ["$docs.vs_score", "$docs.fts_score"]}}},
        {"$replaceRoot": {"newRoot": "$docs"}},
        {"$unset": "embedding"},
        {"$sort": {"score": -1}},
        {"$limit": request.k},
    ]
