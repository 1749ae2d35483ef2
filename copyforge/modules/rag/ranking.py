"""
Result fusion for hybrid brand-document search.

Both strategies take the two ranked result lists returned by the vector
and full-text RPCs (each row is a dict with at least an ``id``) and return
a single list ordered best-first, truncated to ``limit``.
"""
from typing import Any, Dict, List, Tuple

RRF_K = 60


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def weighted_merge(
    vector_results: List[Dict[str, Any]],
    keyword_results: List[Dict[str, Any]],
    limit: int,
    vector_weight: float = 0.7,
    keyword_weight: float = 0.3,
) -> List[Dict[str, Any]]:
    """
    combined = vector_weight * v + keyword_weight * k

    v is the vector similarity clamped to [0, 1]; k is the full-text rank
    divided by the largest rank in the keyword set. A document found by both
    searches appears once, keeping the higher of each sub-score. Ties are
    broken by position in the vector list, then in the keyword list.
    """
    if limit <= 0 or (not vector_results and not keyword_results):
        return []

    max_rank = max((float(doc.get("rank") or 0.0) for doc in keyword_results), default=0.0)

    # id -> [doc, v, k, vector_pos, keyword_pos]
    merged: Dict[str, list] = {}
    missing = float("inf")

    for pos, doc in enumerate(vector_results):
        v = _clamp(float(doc.get("similarity") or 0.0))
        entry = merged.get(doc["id"])
        if entry is None:
            merged[doc["id"]] = [doc, v, 0.0, pos, missing]
        else:
            entry[1] = max(entry[1], v)
            entry[3] = min(entry[3], pos)

    for pos, doc in enumerate(keyword_results):
        k = float(doc.get("rank") or 0.0) / max_rank if max_rank > 0 else 0.0
        k = _clamp(k)
        entry = merged.get(doc["id"])
        if entry is None:
            merged[doc["id"]] = [doc, 0.0, k, missing, pos]
        else:
            entry[2] = max(entry[2], k)
            entry[4] = min(entry[4], pos)
            if "rank" not in entry[0]:
                entry[0] = {**entry[0], "rank": doc.get("rank")}

    scored: List[Tuple[float, float, float, Dict[str, Any]]] = []
    for doc, v, k, vector_pos, keyword_pos in merged.values():
        score = vector_weight * v + keyword_weight * k
        scored.append((score, vector_pos, keyword_pos, {**doc, "score": score}))

    scored.sort(key=lambda item: (-item[0], item[1], item[2]))
    return [item[3] for item in scored[:limit]]


def reciprocal_rank_fusion(
    vector_results: List[Dict[str, Any]],
    keyword_results: List[Dict[str, Any]],
    limit: int,
    k: int = RRF_K,
) -> List[Dict[str, Any]]:
    """score = sum over lists of 1 / (k + position), position starting at 1"""
    if limit <= 0:
        return []

    scores: Dict[str, list] = {}
    order = 0
    for results in (vector_results, keyword_results):
        for index, doc in enumerate(results):
            rrf = 1.0 / (k + index + 1)
            entry = scores.get(doc["id"])
            if entry is None:
                scores[doc["id"]] = [doc, rrf, order]
                order += 1
            else:
                entry[1] += rrf

    ranked = sorted(scores.values(), key=lambda entry: (-entry[1], entry[2]))
    return [{**doc, "score": score} for doc, score, _ in ranked[:limit]]
