"""Test factories for raw stream fields as producers write them."""

from typing import Dict


def make_user_registered_fields(
    user_id: str = "42", email: str = "ann@example.com"
) -> Dict[str, str]:
    return {
        "eventId": "evt-user-1",
        "timestamp": "2024-01-01T10:00:00Z",
        "userId": user_id,
        "username": "ann",
        "email": email,
        "firstName": "Ann",
        "lastName": "Lee",
    }


def make_session_completed_fields(user_id: str = "42") -> Dict[str, str]:
    return {
        "eventId": "evt-session-1",
        "timestamp": "2024-01-01T11:00:00Z",
        "userId": user_id,
        "username": "ann",
        "email": "ann@example.com",
        "sessionId": "s-1",
        "assessmentName": "Algebra",
        "completionTime": "2024-01-01T11:00:00Z",
        "score": "85",
        "status": "PASSED",
    }


def make_assessment_published_fields() -> Dict[str, str]:
    return {
        "eventId": "evt-assessment-1",
        "assessmentId": "a-1",
        "assessmentName": "Geometry",
        "duration": "60",
        "dueDate": "2024-02-01",
        "assignedUsers.[0].userId": "42",
        "assignedUsers.[0].username": "ann",
        "assignedUsers.[0].email": "ann@example.com",
        "assignedUsers.[1].userId": "43",
        "assignedUsers.[1].username": "bob",
        "assignedUsers.[1].email": "bob@example.com",
    }


def make_proctoring_violation_fields() -> Dict[str, str]:
    return {
        "eventId": "evt-violation-1",
        "timestamp": "2024-01-01T12:00:00Z",
        "userId": "42",
        "username": "ann",
        "sessionId": "s-1",
        "violationType": "TAB_SWITCH",
        "severity": "HIGH",
        "proctorIds.[0]": "p-1",
        "proctorIds.[1]": "p-2",
    }
