"""
Chat context retrieval

Long schedule / wording text is cut into overlapping character windows;
windows are ranked by keyword overlap with the question.
"""

from __future__ import annotations

import re

_TOKEN_RE = re.compile(r"[a-z0-9][a-z0-9$%'-]*")

STOPWORDS = frozenset({
    "a", "an", "and", "are", "as", "at", "be", "by", "can", "do", "does", "for",
    "from", "have", "how", "i", "if", "in", "is", "it", "me", "my", "of", "on",
    "or", "our", "the", "this", "to", "under", "we", "what", "when", "where",
    "which", "who", "will", "with", "would", "you", "your", "policy",
})


def keywords(text: str) -> set[str]:
    """Lower-case word tokens minus stopwords"""
    return {
        t for t in _TOKEN_RE.findall(text.lower())
        if t not in STOPWORDS and len(t) > 1
    }


def split_windows(text: str, size: int, overlap: int) -> list[str]:
    """
    Overlapping character windows

    step = size - overlap (at least 1)
    """
    if not text:
        return []
    if size <= 0:
        return [text]

    step = max(size - overlap, 1)
    windows = []
    for start in range(0, len(text), step):
        windows.append(text[start:start + size])
        if start + size >= len(text):
            break
    return windows


def score_window(window: str, query_terms: set[str]) -> int:
    """Number of distinct query terms present in the window"""
    if not query_terms:
        return 0
    return len(query_terms & keywords(window))


def retrieve_context(
    text: str | None,
    question: str,
    top_k: int,
    size: int,
    overlap: int,
) -> list[str]:
    """
    Top-k windows for a question, in document order

    Nothing scores -> the first top_k windows (document opening)
    """
    windows = split_windows(text or "", size, overlap)
    if not windows:
        return []

    terms = keywords(question)
    scored = [(score_window(w, terms), idx) for idx, w in enumerate(windows)]
    hits = [(score, idx) for score, idx in scored if score > 0]

    if not hits:
        return windows[:top_k]

    # score desc, position asc
    hits.sort(key=lambda x: (-x[0], x[1]))
    keep = sorted(idx for _, idx in hits[:top_k])
    return [windows[i] for i in keep]
