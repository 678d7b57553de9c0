"""Publish pipeline: per-identifier versioned upserts with retry."""

from langfactory.publish.pipeline import IdentifierOutcome, OutcomeStatus, Publisher, PublishResult

__all__ = ["IdentifierOutcome", "OutcomeStatus", "PublishResult", "Publisher"]
