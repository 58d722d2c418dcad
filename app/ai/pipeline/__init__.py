"""Pipeline contracts shared by providers, the bank parser and the orchestrator."""

from app.ai.pipeline.contracts import CandidateQuestion, CandidateValidationError, validate_candidate, validate_candidates

__all__ = ["CandidateQuestion", "CandidateValidationError", "validate_candidate", "validate_candidates"]
