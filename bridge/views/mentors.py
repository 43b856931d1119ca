from django.http import JsonResponse

from ..exceptions import InvalidRequest, Unauthorized
from ..forms import MentorVerificationForm
from ..rating import submit_verification
from ..services import mentor_deck
from ..utils import serialize_user
from .base import api_view, bind, json_body, require_self


@api_view(["GET"])
def list_mentors(request):
    """Swipe deck. With ``studentId`` already-swiped mentors are left out."""
    student_id = request.GET.get("studentId")
    if student_id:
        try:
            student_id = int(student_id)
        except ValueError:
            raise InvalidRequest("studentId must be an integer")
        require_self(request, student_id)
    else:
        student_id = None
    return JsonResponse([serialize_user(m) for m in mentor_deck(student_id)], safe=False)


@api_view(["POST"])
def verify_mentor(request):
    mentor = request.bridge_user
    if not mentor.is_mentor:
        raise Unauthorized("Only mentors can submit verification links")
    data = bind(MentorVerificationForm, json_body(request))
    system_rating = submit_verification(
        mentor,
        linkedin_url=data.get("linkedinUrl"),
        github_url=data.get("githubUrl"),
        cv_url=data.get("cvUrl"),
        rating=data.get("rating"),
    )
    return JsonResponse({"message": "Verification submitted", "systemRating": system_rating})
