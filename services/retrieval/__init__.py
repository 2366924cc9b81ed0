"""
Retrieval Module

Schedule vs wording comparison, chat policy selection and context retrieval
"""

from .chat_service import ChatReply, PolicySelection, answer_question, chat, select_policy
from .compare_service import (
    CompareInputError,
    CompareOutcome,
    ComparisonAnalysis,
    EndorsementDifference,
    InvalidAnalysisError,
    SectionComparison,
    compare_policy,
)
from .context import keywords, retrieve_context, split_windows

__all__ = [
    # Compare
    "ComparisonAnalysis",
    "SectionComparison",
    "EndorsementDifference",
    "CompareOutcome",
    "CompareInputError",
    "InvalidAnalysisError",
    "compare_policy",
    # Chat
    "ChatReply",
    "PolicySelection",
    "select_policy",
    "answer_question",
    "chat",
    # Context
    "keywords",
    "split_windows",
    "retrieve_context",
]
