"""Per skill-area scoring for completed assessments."""

from typing import Dict, Iterable, Mapping

from ..constants import MAX_SKILL_SCORE
from ..domain.exceptions import DivisionUndefined
from ..domain.models import AnswerRecord, AreaTally, SkillResult


def tally_answers(answers: Iterable[AnswerRecord]) -> Dict[str, AreaTally]:
    """Build a per-area tally from stored answer records."""
    tally: Dict[str, AreaTally] = {}
    for answer in answers:
        area = tally.setdefault(answer.skill_area, AreaTally())
        area.total += 1
        if answer.is_correct:
            area.correct += 1
    return tally


class SkillAggregator:
    """Pure scoring: ``score = correct / total * 10`` per skill area.

    Strengths, weaknesses and recommendations are left empty.
    """

    @staticmethod
    def score(skill_area: str, tally: AreaTally) -> SkillResult:
        if tally.total == 0:
            raise DivisionUndefined(
                f"No answers recorded for skill area '{skill_area}'",
                skill_area=skill_area,
            )
        return SkillResult(
            skill_area=skill_area,
            score=tally.correct * MAX_SKILL_SCORE / tally.total,
        )

    @classmethod
    def compute(cls, per_area_tally: Mapping[str, AreaTally]) -> Dict[str, SkillResult]:
        return {
            area: cls.score(area, tally) for area, tally in per_area_tally.items()
        }

    @classmethod
    def from_answers(cls, answers: Iterable[AnswerRecord]) -> Dict[str, SkillResult]:
        return cls.compute(tally_answers(answers))
