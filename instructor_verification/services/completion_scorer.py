"""
Completion Scorer
Derives completion score and current step from an application's sections
"""
import math
from typing import Any, Dict, Mapping, Optional, Tuple

SECTION_POINTS = 25
DOCUMENT_POINTS = 2.78
MAX_DOCUMENT_POINTS = 25

# Keys that describe a section rather than fill it
_META_KEYS = frozenset({"section", "schema_version"})


def is_populated(section: Optional[Mapping[str, Any]]) -> bool:
    """A section counts once it holds at least one non-empty value"""
    if not section:
        return False
    for key, value in section.items():
        if key in _META_KEYS:
            continue
        if value is None or value == "" or value == [] or value == {}:
            continue
        return True
    return False


class CompletionScorer:
    """
    Pure scoring of intake progress.

    Score:
    - 25 points each for personal info, professional background and
      teaching information
    - documents: min(25, count * 2.78), floored
    - clamped to [0, 100]

    Step is a staircase over the same four stages; it stops at the first
    missing stage.
    """

    @staticmethod
    def calculate_score(sections: Mapping[str, Any], document_count: int) -> int:
        score = 0.0
        for name in ("personal_info", "professional_background", "teaching_information"):
            if is_populated(sections.get(name)):
                score += SECTION_POINTS

        score += min(MAX_DOCUMENT_POINTS, max(document_count, 0) * DOCUMENT_POINTS)

        return int(math.floor(min(100.0, max(0.0, score))))

    @staticmethod
    def calculate_step(sections: Mapping[str, Any], document_count: int) -> int:
        stages = (
            is_populated(sections.get("personal_info")),
            is_populated(sections.get("professional_background")),
            is_populated(sections.get("teaching_information")),
            is_populated(sections.get("documents")) or document_count > 0,
        )
        step = 0
        for present in stages:
            if not present:
                break
            step += 1
        return step

    @classmethod
    def evaluate(cls, sections: Mapping[str, Any], document_count: int) -> Tuple[int, int]:
        """Return (completion_score, current_step)"""
        return cls.calculate_score(sections, document_count), cls.calculate_step(sections, document_count)


def application_sections(application) -> Dict[str, Any]:
    """Section view of an application row"""
    return {
        "personal_info": application.personal_info or {},
        "professional_background": application.professional_background or {},
        "teaching_information": application.teaching_information or {},
        "documents": application.documents or {},
    }
