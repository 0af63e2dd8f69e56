"""
Pydantic schemas for API request and response validation.

Request models validate questionnaire input at the HTTP boundary; pipeline
models (Candidate, EnrichedCandidate, StoredRecommendation) are shared with
the service layer.
"""
