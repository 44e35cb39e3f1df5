import structlog
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.schemas.eligibility import (
    EligibilityData,
    EligibilityResponse,
    Eligible,
    ExamListResponse,
    Ineligible,
)
from app.services.eligibility import (
    check_exam_access,
    describe_result,
    resolve_eligibility,
)
from app.utils.deps import CurrentStudent, EligibilitySource, Now

router = APIRouter()
logger = structlog.get_logger()


def _ineligible_response(result: Ineligible) -> JSONResponse:
    body = EligibilityResponse(
        success=False,
        message=describe_result(result),
        data=EligibilityData(result=result, remediation=result.remediation),
    )
    return JSONResponse(status_code=403, content=body.model_dump(mode="json"))


@router.get("/eligibility", response_model=EligibilityResponse)
async def get_eligibility(
    current_student: CurrentStudent, source: EligibilitySource, now: Now
):
    """
    Explain whether the current student can access exams, and if not, who must act.
    """
    result = await resolve_eligibility(source, current_student.id, now)
    return EligibilityResponse(
        success=isinstance(result, Eligible),
        message=describe_result(result),
        data=EligibilityData(
            result=result,
            remediation=result.remediation if isinstance(result, Ineligible) else None,
        ),
    )


@router.get("/exams", response_model=ExamListResponse)
async def list_exams(current_student: CurrentStudent, source: EligibilitySource, now: Now):
    """
    List the exams assigned to the current student's batch.

    Responds with 403 and the ineligibility reason when the student's
    subscription does not grant access.
    """
    result = await resolve_eligibility(source, current_student.id, now)
    if isinstance(result, Ineligible):
        return _ineligible_response(result)

    return ExamListResponse(
        exams=result.exams,
        subscription=result.subscription,
        total_exams=result.exam_count,
    )


@router.get("/exams/{exam_id}/access", response_model=EligibilityResponse)
async def get_exam_access(
    exam_id: int, current_student: CurrentStudent, source: EligibilitySource, now: Now
):
    """
    Check whether the current student may open a specific exam.
    """
    result = await check_exam_access(source, current_student.id, exam_id, now)
    if isinstance(result, Ineligible):
        return _ineligible_response(result)

    return EligibilityResponse(
        success=True,
        message="Exam access granted",
        data=EligibilityData(result=result),
    )
