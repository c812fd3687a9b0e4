"""
Request payloads and auth helpers shared by the tests
"""
from instructor_verification.utils import create_access_token


def auth_headers(user):
    token = create_access_token({"sub": user.id, "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


PERSONAL_INFO = {
    "first_name": "Ada",
    "last_name": "Lovelace",
    "phone_number": "+441234567",
    "nationality": "British",
    "bio": "Mathematician and writer",
    "languages_spoken": [{"language": "English", "proficiency": "native"}, "French"],
}

PROFESSIONAL_BACKGROUND = {
    "current_job_title": "Senior Engineer",
    "years_of_experience": 8,
    "education": [{"degree": "BSc", "field_of_study": "Mathematics", "institution": "London"}],
    "linkedin_profile": "https://linkedin.com/in/ada",
}

TEACHING_INFORMATION = {
    "subjects_to_teach": [{"subject": "Python", "level": "advanced"}, "Algorithms"],
    "teaching_motivation": "I enjoy helping others understand how computers think.",
    "teaching_categories": ["Programming"],
    "weekly_availability": {
        "wednesday": [{"start": "18:00", "end": "20:00"}],
        "Monday": [{"start": "09:00", "end": "11:00"}, {"start": "14:00", "end": "16:00"}],
    },
}

CONSENTS = {
    "terms_accepted": True,
    "data_processing": True,
    "background_check": True,
    "code_of_conduct": True,
}
