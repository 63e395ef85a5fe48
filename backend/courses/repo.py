"""
In-memory repository for the course platform (courses, questions, variants).

Why:
    Course content is synced from disk (see `backend.courses.sync`) and the
    platform state (assessment instances, variants, submissions, workspaces)
    only needs to live as long as the process in dev/test. Keeping the data
    in plain dataclasses makes the authorization rules easy to test without a
    database.

Notes:
    - Ids are opaque strings (uuid4), matching the rest of the codebase.
    - Methods raise `ValueError` for invalid input and return `None` for
      unknown ids; web adapters map those to 400/404.
    - Tests can swap the instance via `backend.web.wiring.set_courses_repo`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from backend.identity_access.domain import (
    validate_course_instance_role,
    validate_course_role,
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class User:
    user_id: str
    uid: str
    uin: Optional[str]
    name: str
    is_administrator: bool = False


@dataclass
class Course:
    id: str
    short_name: str
    title: str
    path: str
    example_course: bool = False
    sharing_name: Optional[str] = None


@dataclass
class CourseInstance:
    id: str
    course_id: str
    short_name: str
    long_name: str
    self_enrollment: bool = True


@dataclass
class Question:
    id: str
    course_id: str
    qid: str
    title: str
    share_publicly: bool = False
    workspace: bool = False
    params: Dict[str, Any] = field(default_factory=dict)
    generated_files: Dict[str, str] = field(default_factory=dict)
    submission_files: Dict[str, str] = field(default_factory=dict)
    html: str = ""


@dataclass
class Assessment:
    id: str
    course_instance_id: str
    tid: str
    title: str
    type: str
    question_ids: List[str] = field(default_factory=list)


@dataclass
class AssessmentInstance:
    id: str
    assessment_id: str
    user_id: str
    created_at: str


@dataclass
class InstanceQuestion:
    id: str
    assessment_instance_id: str
    question_id: str
    number: int


@dataclass
class Variant:
    id: str
    question_id: str
    course_id: str
    course_instance_id: Optional[str]
    instance_question_id: Optional[str]
    user_id: str
    authn_user_id: str
    seed: int
    params: Dict[str, Any]
    workspace_id: Optional[str]
    open: bool
    created_at: str


@dataclass
class Submission:
    id: str
    variant_id: str
    auth_user_id: str
    submitted_answer: Dict[str, Any]
    files: Dict[str, bytes]
    created_at: str


@dataclass
class Workspace:
    id: str
    variant_id: str
    state: str
    created_at: str


@dataclass
class SyncResult:
    errors: Optional[str]
    warnings: Optional[str]


class CoursesRepo:
    def __init__(self) -> None:
        self.users: Dict[str, User] = {}
        self.courses: Dict[str, Course] = {}
        self.course_instances: Dict[str, CourseInstance] = {}
        # course_roles[(course_id, user_id)] = role
        self.course_roles: Dict[Tuple[str, str], str] = {}
        # course_instance_roles[(course_instance_id, user_id)] = role
        self.course_instance_roles: Dict[Tuple[str, str], str] = {}
        self.enrollments: set[Tuple[str, str]] = set()
        self.questions: Dict[str, Question] = {}
        self.assessments: Dict[str, Assessment] = {}
        self.assessment_instances: Dict[str, AssessmentInstance] = {}
        self.instance_questions: Dict[str, InstanceQuestion] = {}
        self.variants: Dict[str, Variant] = {}
        self.submissions: Dict[str, Submission] = {}
        self.workspaces: Dict[str, Workspace] = {}
        # sync_results[(course_id, rel_path)] = SyncResult
        self.sync_results: Dict[Tuple[str, str], SyncResult] = {}

    # --- Users -----------------------------------------------------------------
    def get_or_create_user(self, *, uid: str, name: str, uin: Optional[str] = None) -> User:
        normalized = (uid or "").strip().lower()
        if not normalized:
            raise ValueError("invalid_uid")
        existing = self.get_user_by_uid(normalized)
        if existing:
            return existing
        user = User(user_id=str(uuid4()), uid=normalized, uin=uin, name=name or normalized)
        self.users[user.user_id] = user
        return user

    def get_user(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    def get_user_by_uid(self, uid: str) -> Optional[User]:
        normalized = (uid or "").strip().lower()
        for user in self.users.values():
            if user.uid == normalized:
                return user
        return None

    def set_administrator(self, user_id: str, is_administrator: bool = True) -> None:
        user = self.users.get(user_id)
        if user is None:
            raise ValueError("unknown_user")
        user.is_administrator = is_administrator

    # --- Courses & course instances -------------------------------------------
    def create_course(self, *, short_name: str, title: str, path: str, example_course: bool = False) -> Course:
        if not (short_name or "").strip():
            raise ValueError("invalid_short_name")
        course = Course(
            id=str(uuid4()),
            short_name=short_name.strip(),
            title=title,
            path=path,
            example_course=example_course,
        )
        self.courses[course.id] = course
        return course

    def get_course(self, course_id: str) -> Optional[Course]:
        return self.courses.get(course_id)

    def update_course(self, course_id: str, *, title: str, example_course: bool) -> Course:
        course = self.courses.get(course_id)
        if course is None:
            raise ValueError("unknown_course")
        course.title = title
        course.example_course = example_course
        return course

    def update_course_sharing_name(self, *, course_id: str, sharing_name: Optional[str]) -> None:
        course = self.courses.get(course_id)
        if course is None:
            raise ValueError("unknown_course")
        course.sharing_name = (sharing_name or "").strip() or None

    def upsert_course_instance(
        self, *, course_id: str, short_name: str, long_name: str, self_enrollment: bool = True
    ) -> CourseInstance:
        for ci in self.course_instances.values():
            if ci.course_id == course_id and ci.short_name == short_name:
                ci.long_name = long_name
                ci.self_enrollment = self_enrollment
                return ci
        ci = CourseInstance(
            id=str(uuid4()),
            course_id=course_id,
            short_name=short_name,
            long_name=long_name,
            self_enrollment=self_enrollment,
        )
        self.course_instances[ci.id] = ci
        return ci

    def get_course_instance(self, course_instance_id: str) -> Optional[CourseInstance]:
        return self.course_instances.get(course_instance_id)

    def get_course_instance_by_short_name(self, course_id: str, short_name: str) -> Optional[CourseInstance]:
        for ci in self.course_instances.values():
            if ci.course_id == course_id and ci.short_name == short_name:
                return ci
        return None

    # --- Permissions -----------------------------------------------------------
    def insert_course_permissions_by_user_uid(self, *, course_id: str, uid: str, course_role: str) -> User:
        if course_id not in self.courses:
            raise ValueError("unknown_course")
        role = validate_course_role(course_role)
        user = self.get_or_create_user(uid=uid, name=uid)
        self.course_roles[(course_id, user.user_id)] = role
        return user

    def insert_course_instance_permissions(
        self, *, course_id: str, course_instance_id: str, user_id: str, course_instance_role: str
    ) -> None:
        ci = self.course_instances.get(course_instance_id)
        if ci is None or ci.course_id != course_id:
            raise ValueError("unknown_course_instance")
        role = validate_course_instance_role(course_instance_role)
        # Course instance roles hang off a course permission row; create a
        # role-less one when the user has none yet.
        self.course_roles.setdefault((course_id, user_id), "None")
        self.course_instance_roles[(course_instance_id, user_id)] = role

    def get_course_role(self, course_id: str, user_id: str) -> Optional[str]:
        role = self.course_roles.get((course_id, user_id))
        return None if role in (None, "None") else role

    def get_course_instance_role(self, course_instance_id: str, user_id: str) -> Optional[str]:
        return self.course_instance_roles.get((course_instance_id, user_id))

    def list_course_owners(self, course_id: str) -> List[User]:
        owners = [
            self.users[user_id]
            for (cid, user_id), role in self.course_roles.items()
            if cid == course_id and role == "Owner" and user_id in self.users
        ]
        return sorted(owners, key=lambda u: u.uid)

    # --- Enrollments -----------------------------------------------------------
    def enroll(self, *, user_id: str, course_instance_id: str) -> bool:
        key = (course_instance_id, user_id)
        if key in self.enrollments:
            return False
        self.enrollments.add(key)
        return True

    def is_enrolled(self, *, user_id: str, course_instance_id: str) -> bool:
        return (course_instance_id, user_id) in self.enrollments

    # --- Questions & assessments ----------------------------------------------
    def upsert_question(self, *, course_id: str, qid: str, **fields: Any) -> Question:
        existing = self.get_question_by_qid(course_id=course_id, qid=qid)
        if existing:
            for key, value in fields.items():
                setattr(existing, key, value)
            return existing
        question = Question(id=str(uuid4()), course_id=course_id, qid=qid, **fields)
        self.questions[question.id] = question
        return question

    def get_question(self, question_id: str) -> Optional[Question]:
        return self.questions.get(question_id)

    def get_question_by_qid(self, *, course_id: str, qid: str) -> Optional[Question]:
        for q in self.questions.values():
            if q.course_id == course_id and q.qid == qid:
                return q
        return None

    def upsert_assessment(
        self, *, course_instance_id: str, tid: str, title: str, type: str, question_ids: List[str]
    ) -> Assessment:
        existing = self.get_assessment_by_tid(course_instance_id=course_instance_id, tid=tid)
        if existing:
            existing.title = title
            existing.type = type
            existing.question_ids = list(question_ids)
            return existing
        assessment = Assessment(
            id=str(uuid4()),
            course_instance_id=course_instance_id,
            tid=tid,
            title=title,
            type=type,
            question_ids=list(question_ids),
        )
        self.assessments[assessment.id] = assessment
        return assessment

    def get_assessment(self, assessment_id: str) -> Optional[Assessment]:
        return self.assessments.get(assessment_id)

    def get_assessment_by_tid(self, *, course_instance_id: str, tid: str) -> Optional[Assessment]:
        for a in self.assessments.values():
            if a.course_instance_id == course_instance_id and a.tid == tid:
                return a
        return None

    # --- Assessment instances --------------------------------------------------
    def get_or_create_assessment_instance(self, *, assessment_id: str, user_id: str) -> AssessmentInstance:
        assessment = self.assessments.get(assessment_id)
        if assessment is None:
            raise ValueError("unknown_assessment")
        for ai in self.assessment_instances.values():
            if ai.assessment_id == assessment_id and ai.user_id == user_id:
                return ai
        ai = AssessmentInstance(id=str(uuid4()), assessment_id=assessment_id, user_id=user_id, created_at=_now_iso())
        self.assessment_instances[ai.id] = ai
        for number, question_id in enumerate(assessment.question_ids, start=1):
            iq = InstanceQuestion(
                id=str(uuid4()),
                assessment_instance_id=ai.id,
                question_id=question_id,
                number=number,
            )
            self.instance_questions[iq.id] = iq
        return ai

    def get_assessment_instance(self, assessment_instance_id: str) -> Optional[AssessmentInstance]:
        return self.assessment_instances.get(assessment_instance_id)

    def list_instance_questions(self, assessment_instance_id: str) -> List[InstanceQuestion]:
        items = [iq for iq in self.instance_questions.values() if iq.assessment_instance_id == assessment_instance_id]
        return sorted(items, key=lambda iq: iq.number)

    def get_instance_question(self, instance_question_id: str) -> Optional[InstanceQuestion]:
        return self.instance_questions.get(instance_question_id)

    # --- Variants, submissions, workspaces ------------------------------------
    def insert_variant(self, **fields: Any) -> Variant:
        variant = Variant(id=str(uuid4()), created_at=_now_iso(), open=True, workspace_id=None, **fields)
        self.variants[variant.id] = variant
        return variant

    def get_variant(self, variant_id: str) -> Optional[Variant]:
        return self.variants.get(variant_id)

    def latest_open_variant_for_instance_question(self, instance_question_id: str) -> Optional[Variant]:
        items = [
            v for v in self.variants.values()
            if v.instance_question_id == instance_question_id and v.open
        ]
        if not items:
            return None
        return max(items, key=lambda v: v.created_at)

    def insert_submission(
        self, *, variant_id: str, auth_user_id: str, submitted_answer: Dict[str, Any], files: Dict[str, bytes]
    ) -> Submission:
        if variant_id not in self.variants:
            raise ValueError("unknown_variant")
        submission = Submission(
            id=str(uuid4()),
            variant_id=variant_id,
            auth_user_id=auth_user_id,
            submitted_answer=dict(submitted_answer),
            files=dict(files),
            created_at=_now_iso(),
        )
        self.submissions[submission.id] = submission
        return submission

    def get_submission(self, submission_id: str) -> Optional[Submission]:
        return self.submissions.get(submission_id)

    def list_submissions_for_variant(self, variant_id: str) -> List[Submission]:
        items = [s for s in self.submissions.values() if s.variant_id == variant_id]
        return sorted(items, key=lambda s: s.created_at, reverse=True)

    def create_workspace(self, *, variant_id: str) -> Workspace:
        variant = self.variants.get(variant_id)
        if variant is None:
            raise ValueError("unknown_variant")
        workspace = Workspace(id=str(uuid4()), variant_id=variant_id, state="uninitialized", created_at=_now_iso())
        self.workspaces[workspace.id] = workspace
        variant.workspace_id = workspace.id
        return workspace

    def get_workspace(self, workspace_id: str) -> Optional[Workspace]:
        return self.workspaces.get(workspace_id)

    # --- Sync results ----------------------------------------------------------
    def clear_sync_results(self, course_id: str) -> None:
        for key in [k for k in self.sync_results if k[0] == course_id]:
            del self.sync_results[key]

    def set_sync_result(self, course_id: str, rel_path: str, *, errors: Optional[str], warnings: Optional[str]) -> None:
        self.sync_results[(course_id, rel_path)] = SyncResult(errors=errors or None, warnings=warnings or None)

    def get_sync_result(self, course_id: str, rel_path: str) -> SyncResult:
        return self.sync_results.get((course_id, rel_path)) or SyncResult(errors=None, warnings=None)


__all__ = [
    "User",
    "Course",
    "CourseInstance",
    "Question",
    "Assessment",
    "AssessmentInstance",
    "InstanceQuestion",
    "Variant",
    "Submission",
    "Workspace",
    "SyncResult",
    "CoursesRepo",
]
