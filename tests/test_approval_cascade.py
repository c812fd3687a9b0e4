"""
Tests for profile projection helpers of the approval cascade
"""
from instructor_verification.models import InstructorApplication
from instructor_verification.services.approval_cascade import (
    ApprovalCascade, flatten_availability, subject_names
)

from helpers import PERSONAL_INFO, PROFESSIONAL_BACKGROUND, TEACHING_INFORMATION


def test_flatten_availability_orders_by_weekday():
    slots = flatten_availability(TEACHING_INFORMATION["weekly_availability"])

    assert slots == [
        {"day": "monday", "start": "09:00", "end": "11:00"},
        {"day": "monday", "start": "14:00", "end": "16:00"},
        {"day": "wednesday", "start": "18:00", "end": "20:00"},
    ]


def test_flatten_availability_skips_incomplete_slots():
    assert flatten_availability(None) == []
    assert flatten_availability({"friday": [{"start": "10:00"}], "sunday": []}) == []


def test_subject_names_accepts_strings_and_entries():
    assert subject_names([{"subject": "Python", "level": "advanced"}, "Algorithms", {"level": "x"}, ""]) == [
        "Python", "Algorithms"
    ]
    assert subject_names(None) == []


class TestProjectProfile:

    def setup_method(self):
        self.cascade = ApprovalCascade()
        self.application = InstructorApplication(
            user_id="user-1",
            personal_info=PERSONAL_INFO,
            professional_background=PROFESSIONAL_BACKGROUND,
            teaching_information=TEACHING_INFORMATION,
            documents={"professional_certifications": ["AWS Solutions Architect", "BSc, Mathematics, London"]},
            years_of_experience=0
        )

    def test_projection(self):
        projection = self.cascade.project_profile(self.application)

        assert projection["title"] == "Senior Engineer"
        assert projection["bio"] == "Mathematician and writer"
        assert projection["expertise"] == ["Python", "Algorithms"]
        assert projection["subjects_teaching"] == ["Python", "Algorithms"]
        assert projection["experience"] == 8
        assert projection["languages_spoken"] == PERSONAL_INFO["languages_spoken"]
        assert projection["personal_website"] is None
        assert len(projection["available_time_slots"]) == 3

    def test_qualifications_merge_education_and_certifications(self):
        projection = self.cascade.project_profile(self.application)
        assert projection["qualifications"] == ["BSc, Mathematics, London", "AWS Solutions Architect"]

    def test_empty_sections(self):
        projection = self.cascade.project_profile(InstructorApplication(user_id="user-2"))
        assert projection["expertise"] == []
        assert projection["qualifications"] == []
        assert projection["available_time_slots"] == []
        assert projection["experience"] == 0
