"""Skill store, similarity, usage tracking and retirement."""

from skill_manager.skills.retirement import RetirementReport, retire_unused_skills
from skill_manager.skills.similarity import (
    SimilarityMatch,
    find_similar_strict,
    find_similar_wide,
    jaccard_similarity,
    prefix_token_count,
)
from skill_manager.skills.store import Skill, get_active_skills
from skill_manager.skills.usage import UsageReport, track_usage

__all__ = [
    "RetirementReport",
    "SimilarityMatch",
    "Skill",
    "UsageReport",
    "find_similar_strict",
    "find_similar_wide",
    "get_active_skills",
    "jaccard_similarity",
    "prefix_token_count",
    "retire_unused_skills",
    "track_usage",
]
