from datetime import timedelta

import pytest

from app.scripts.check_student_eligibility import format_report
from app.services.eligibility import resolve_eligibility

STUDENT_ID = 1


@pytest.mark.asyncio
async def test_report_for_eligible_student(portal, now):
    result = await resolve_eligibility(portal, STUDENT_ID, now)

    lines = format_report(result)

    assert lines[0] == "SUCCESS: student can see exams"
    assert "  Plan: Basic (499.00)" in lines
    assert "    - Data Structures Mock" in lines


@pytest.mark.asyncio
async def test_report_for_expired_subscription(portal, now):
    ended = now - timedelta(days=3)
    current = portal.subscriptions[STUDENT_ID]
    portal.subscriptions[STUDENT_ID] = current.model_copy(update={"end_date": ended})

    lines = format_report(await resolve_eligibility(portal, STUDENT_ID, now))

    assert lines[0] == "ISSUE: SUBSCRIPTION_EXPIRED"
    assert "  Who must act: student" in lines
    assert "  Batch ID: 10" in lines
    assert f"  Expired on: {ended.isoformat()}" in lines
