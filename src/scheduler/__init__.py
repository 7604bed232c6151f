"""Spaced-repetition scheduling for multiple-choice questions."""

from .priority import priority_score
from .srs import LastResult, RepetitionRecord, calculate_next_record, new_record

__all__ = ["LastResult", "RepetitionRecord", "calculate_next_record", "new_record", "priority_score"]
