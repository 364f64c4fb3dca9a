# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Typo-tolerant search over workspace-relative template paths.

A candidate's score is the best of:

- subsequence matching, with bonuses for consecutive, word-boundary and
  camel-case matches
- per-segment matching (exact, prefix, substring, or within a small edit
  distance, so ``templete`` still finds ``template``)
- plain substring containment

An exact match of the whole relative path always ranks first.
"""

import re
from typing import Dict, List

from .models import SearchResult

_WORD_BOUNDARY_CHARS = frozenset("/-_. ")
_SEGMENT_SPLIT_RE = re.compile(r"[/\-_.]")


def _subsequence_score(query: str, lower_path: str, original_path: str) -> int:
    score = 0
    path_idx = 0
    prev_match = -2
    matched = 0
    # Camel-case detection needs the two strings to line up index for index.
    check_case = len(lower_path) == len(original_path)

    for q_char in query:
        found = False
        while path_idx < len(lower_path):
            if lower_path[path_idx] == q_char:
                matched += 1
                score += 10
                if path_idx == prev_match + 1:
                    score += 15
                if path_idx == 0 or lower_path[path_idx - 1] in _WORD_BOUNDARY_CHARS:
                    score += 20
                if (
                    check_case
                    and path_idx > 0
                    and original_path[path_idx].isupper()
                    and original_path[path_idx - 1].islower()
                ):
                    score += 15
                prev_match = path_idx
                path_idx += 1
                found = True
                break
            path_idx += 1
        if not found:
            break

    if matched < max(int(len(query) * 0.6), 1):
        return 0
    if matched == len(query):
        score += 30
    score -= (len(query) - matched) * 15
    return max(score, 0)


def fuzzy_substring_distance(query: str, text: str) -> int:
    """Smallest edit distance between *query* and any substring of *text*."""
    if not query:
        return len(text)
    if not text:
        return len(query)

    # Semi-global alignment: free start and free end in text.
    previous = [0] * (len(text) + 1)
    for i, q_char in enumerate(query, start=1):
        current = [i] + [0] * len(text)
        for j, t_char in enumerate(text, start=1):
            cost = 0 if q_char == t_char else 1
            current[j] = min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost)
        previous = current
    return min(previous)


def _max_distance(query: str) -> int:
    if len(query) <= 2:
        return 0
    if len(query) <= 4:
        return 1
    return 2


def _segment_score(query: str, lower_path: str) -> int:
    best = 0
    max_distance = _max_distance(query)

    for segment in _SEGMENT_SPLIT_RE.split(lower_path):
        if not segment:
            continue
        if segment == query:
            best = max(best, 300)
        elif segment.startswith(query):
            best = max(best, 250)
        elif query in segment:
            best = max(best, 200)
        elif segment in query and len(segment) >= 3:
            best = max(best, 150)
        elif max_distance > 0:
            dist = fuzzy_substring_distance(query, segment)
            if 1 <= dist <= max_distance:
                best = max(best, 150 - dist * 40)
    return best


def _contains_score(query: str, lower_path: str) -> int:
    if query in lower_path:
        return 200 + (100 - len(query))
    return 0


def _exact_score(query: str) -> int:
    # Above the best any partial strategy can reach for this query length.
    return max(60 * len(query) + 30, 300) + 100


def score(query: str, relative_path: str) -> int:
    """Score *relative_path* against an already lowercased, stripped *query*."""
    lower_path = relative_path.lower()
    if lower_path == query:
        return _exact_score(query)
    return max(
        _subsequence_score(query, lower_path, relative_path),
        _segment_score(query, lower_path),
        _contains_score(query, lower_path),
    )


def search(query: str, candidates: Dict[str, str], max_results: int = 20) -> List[SearchResult]:
    """Rank *candidates* (absolute path -> relative path) against *query*, best first.

    Ties keep the insertion order of *candidates*. A blank query matches nothing.
    """
    query = query.strip().lower()
    if not query or max_results <= 0:
        return []

    results = []
    for path, rel in candidates.items():
        s = score(query, rel)
        if s > 0:
            results.append(SearchResult(path=path, relative_path=rel, score=s))

    results.sort(key=lambda r: r.score, reverse=True)
    return results[:max_results]
