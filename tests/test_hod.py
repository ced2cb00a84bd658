import pytest
from httpx import AsyncClient
from sqlalchemy import select

from smis.models import Attendance, Course, Grade, Notification, TimetableEntry
from smis.utils.constants import UserRole
from tests.conftest import auth_headers


@pytest.fixture
async def records(db_session, school):
    """One pending grade and one attendance row for the department course"""
    grade = Grade(
        student_id=school.student.id,
        course_id=school.course.id,
        teacher_id=school.teacher.id,
        grade="A",
        semester="Fall",
        year=2026,
    )
    attendance = Attendance(
        student_id=school.student.id,
        course_id=school.course.id,
        teacher_id=school.teacher.id,
        date=school.today,
        status="present",
    )
    db_session.add_all([grade, attendance])
    await db_session.commit()
    return grade, attendance


@pytest.mark.asyncio
async def test_hod_routes_reject_teachers(client: AsyncClient, school):
    response = await client.get("/api/hod/teachers", headers=auth_headers(school.teacher))

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_hod_without_department(client: AsyncClient, make_staff):
    hod = await make_staff(UserRole.HOD)

    response = await client.get("/api/hod/profile", headers=auth_headers(hod))

    assert response.status_code == 403
    assert response.json()["message"] == "HOD is not assigned to any department"


@pytest.mark.asyncio
async def test_get_profile(client: AsyncClient, school):
    response = await client.get("/api/hod/profile", headers=auth_headers(school.hod))

    data = response.json()["data"]
    assert data["id"] == school.hod.id
    assert data["department"]["code"] == "CS"


@pytest.mark.asyncio
async def test_get_teachers_of_own_department(client: AsyncClient, school, make_department, make_staff):
    other = await make_department()
    await make_staff(UserRole.TEACHER, other)

    response = await client.get("/api/hod/teachers", headers=auth_headers(school.hod))

    ids = {t["id"] for t in response.json()["data"]}
    assert ids == {school.hod.id, school.teacher.id}


@pytest.mark.asyncio
async def test_teacher_departments(client: AsyncClient, school):
    response = await client.get(
        f"/api/hod/teachers/{school.teacher.id}/departments", headers=auth_headers(school.hod)
    )

    assert [d["code"] for d in response.json()["data"]] == ["CS"]


@pytest.mark.asyncio
async def test_get_courses_and_classes(client: AsyncClient, school):
    headers = auth_headers(school.hod)

    courses = (await client.get("/api/hod/courses", headers=headers)).json()["data"]
    classes = (await client.get("/api/hod/classes/department", headers=headers)).json()["data"]
    students = (await client.get(f"/api/hod/classes/{school.class_obj.id}/students", headers=headers)).json()["data"]

    assert [c["course_code"] for c in courses] == ["CS101"]
    assert [c["id"] for c in classes] == [school.class_obj.id]
    assert {s["id"] for s in students} == {s.id for s in school.students}


@pytest.mark.asyncio
async def test_approve_grade_and_reject_attendance(client: AsyncClient, school, records, db_session):
    grade, attendance = records
    headers = auth_headers(school.hod)

    response = await client.post(
        "/api/hod/activities/approve",
        json={"activity_type": "grade", "activity_id": grade.id, "approve": True},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Activity approved"

    response = await client.post(
        "/api/hod/activities/approve",
        json={"activity_type": "attendance", "activity_id": attendance.id, "approve": False},
        headers=headers,
    )
    assert response.json()["data"]["status"] == "rejected"

    await db_session.refresh(grade)
    await db_session.refresh(attendance)
    assert grade.status == "approved"
    assert attendance.approval_status == "rejected"


@pytest.mark.asyncio
async def test_approve_unknown_activity_type(client: AsyncClient, school):
    response = await client.post(
        "/api/hod/activities/approve",
        json={"activity_type": "fee", "activity_id": 1, "approve": True},
        headers=auth_headers(school.hod),
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid activity type"


@pytest.mark.asyncio
async def test_approve_activity_outside_department(client: AsyncClient, school, records, make_department, make_staff):
    grade, _ = records
    other_hod = await make_staff(UserRole.HOD, await make_department())

    response = await client.post(
        "/api/hod/activities/approve",
        json={"activity_type": "grade", "activity_id": grade.id, "approve": True},
        headers=auth_headers(other_hod),
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_attendance_report(client: AsyncClient, school, records):
    response = await client.post("/api/hod/reports/attendance", headers=auth_headers(school.hod))

    assert response.status_code == 200
    report = response.json()["data"]["report"]
    assert report[0]["course_code"] == "CS101"
    assert report[0]["total_records"] == 1
    assert report[0]["attendance_percentage"] == 100.0


@pytest.mark.asyncio
async def test_grades_report(client: AsyncClient, school, records):
    response = await client.post(
        "/api/hod/reports/grades", json={"semester": "Fall"}, headers=auth_headers(school.hod)
    )

    report = response.json()["data"]["report"]
    assert report == [{
        "course_id": school.course.id,
        "course_name": school.course.name,
        "course_code": "CS101",
        "grade": "A",
        "count": 1,
    }]


@pytest.mark.asyncio
async def test_unknown_report_type(client: AsyncClient, school):
    response = await client.post("/api/hod/reports/finance", headers=auth_headers(school.hod))

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid report type"


@pytest.mark.asyncio
async def test_manage_course_lifecycle(client: AsyncClient, school, db_session):
    headers = auth_headers(school.hod)

    response = await client.post(
        "/api/hod/courses/manage",
        json={"action": "add", "course_data": {"course_code": "cs201", "name": "Data Structures", "credits": 4}},
        headers=headers,
    )
    assert response.status_code == 200
    course = response.json()["data"]
    assert course["course_code"] == "CS201"
    assert course["department_id"] == school.department.id

    response = await client.post(
        "/api/hod/courses/manage",
        json={"action": "edit", "course_data": {"id": course["id"], "name": "Data Structures I"}},
        headers=headers,
    )
    assert response.json()["data"]["name"] == "Data Structures I"

    response = await client.post(
        "/api/hod/courses/manage",
        json={"action": "delete", "course_data": {"id": course["id"]}},
        headers=headers,
    )
    assert response.status_code == 200
    deleted = await db_session.get(Course, course["id"])
    assert deleted.is_deleted is True


@pytest.mark.asyncio
async def test_manage_course_duplicate_code(client: AsyncClient, school):
    response = await client.post(
        "/api/hod/courses/manage",
        json={"action": "add", "course_data": {"course_code": "cs101", "name": "Copy"}},
        headers=auth_headers(school.hod),
    )

    assert response.status_code == 409
    assert response.json()["details"]["field"] == "course_code"


@pytest.mark.asyncio
async def test_delete_scheduled_course(client: AsyncClient, school):
    response = await client.post(
        "/api/hod/courses/manage",
        json={"action": "delete", "course_data": {"id": school.course.id}},
        headers=auth_headers(school.hod),
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_manage_course_invalid_action(client: AsyncClient, school):
    response = await client.post(
        "/api/hod/courses/manage",
        json={"action": "archive", "course_data": {"id": school.course.id}},
        headers=auth_headers(school.hod),
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_class_and_add_members(client: AsyncClient, school, make_student, make_course):
    headers = auth_headers(school.hod)

    response = await client.post(
        "/api/hod/classes/create",
        json={"name": "CS Year 2", "academic_year": "2026-2027", "students": [school.students[0].id]},
        headers=headers,
    )
    assert response.status_code == 201
    class_id = response.json()["data"]["id"]

    newcomer = await make_student(school.department)
    response = await client.post(
        "/api/hod/classes/add-students",
        json={"class_id": class_id, "student_ids": [school.students[0].id, newcomer.id]},
        headers=headers,
    )
    data = response.json()["data"]
    assert data["added"] == [newcomer.id]
    assert data["already_enrolled"] == [school.students[0].id]

    course = await make_course(school.department)
    response = await client.post(
        "/api/hod/classes/add-courses",
        json={"class_id": class_id, "course_ids": [course.id]},
        headers=headers,
    )
    assert response.json()["data"]["added"] == [course.id]


@pytest.mark.asyncio
async def test_create_class_with_foreign_student(client: AsyncClient, school, make_department, make_student):
    outsider = await make_student(await make_department())

    response = await client.post(
        "/api/hod/classes/create",
        json={"name": "Mixed", "academic_year": "2026-2027", "students": [outsider.id]},
        headers=auth_headers(school.hod),
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_class_with_reversed_dates(client: AsyncClient, school):
    response = await client.post(
        "/api/hod/classes/create",
        json={"name": "Backwards", "academic_year": "2026-2027",
              "start_date": "2027-06-01", "end_date": "2026-09-01"},
        headers=auth_headers(school.hod),
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_add_and_remove_teachers(client: AsyncClient, school, make_staff):
    headers = auth_headers(school.hod)
    floating = await make_staff(UserRole.TEACHER)

    response = await client.post(
        "/api/hod/departments/add-teachers", json={"teacher_ids": [floating.id]}, headers=headers
    )
    assert response.json()["data"]["teacher_ids"] == [floating.id]

    response = await client.post(
        "/api/hod/departments/remove-teachers", json={"teacher_ids": [floating.id]}, headers=headers
    )
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_remove_teacher_outside_department(client: AsyncClient, school, make_department, make_staff):
    outsider = await make_staff(UserRole.TEACHER, await make_department())

    response = await client.post(
        "/api/hod/departments/remove-teachers",
        json={"teacher_ids": [outsider.id]},
        headers=auth_headers(school.hod),
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_add_unknown_teacher(client: AsyncClient, school):
    response = await client.post(
        "/api/hod/departments/add-teachers", json={"teacher_ids": [4242]}, headers=auth_headers(school.hod)
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_approve_timetable(client: AsyncClient, school, make_slot, db_session):
    pending = await make_slot(school.course, school.teacher, school.class_obj, day="Tuesday", status="pending")

    response = await client.post(
        "/api/hod/timetable/approve",
        json={"timetable_ids": [pending.id], "approve": True},
        headers=auth_headers(school.hod),
    )

    assert response.status_code == 200
    assert response.json()["data"]["timetable_ids"] == [pending.id]
    entry = (await db_session.execute(select(TimetableEntry).where(TimetableEntry.id == pending.id))).scalar_one()
    assert entry.status == "approved"


@pytest.mark.asyncio
async def test_department_timetable(client: AsyncClient, school):
    response = await client.get("/api/hod/timetable", headers=auth_headers(school.hod))

    assert [e["id"] for e in response.json()["data"]] == [school.slot.id]


@pytest.mark.asyncio
async def test_stats(client: AsyncClient, school, records):
    response = await client.get("/api/hod/stats", headers=auth_headers(school.hod))

    data = response.json()["data"]
    assert data["courses"] == 1
    assert data["teachers"] == 2
    assert data["students"] == 2
    assert data["attendance"]["total_records"] == 1
    assert data["attendance"]["average_attendance_percentage"] == 100.0
    assert data["grades"] == [{"grade": "A", "count": 1}]


@pytest.mark.asyncio
async def test_notify_department_teachers(client: AsyncClient, school, db_session):
    response = await client.post(
        "/api/hod/notifications/department",
        json={"title": "Staff meeting", "message": "Friday at 3pm"},
        headers=auth_headers(school.hod),
    )

    assert response.status_code == 201
    assert response.json()["data"]["recipients"] == 1

    sent = (await db_session.execute(select(Notification))).scalars().all()
    assert [(n.user_id, n.recipient_type) for n in sent] == [(school.teacher.id, "staff")]


@pytest.mark.asyncio
async def test_manage_course_rejects_wrong_types(client: AsyncClient, school):
    headers = auth_headers(school.hod)

    credits = await client.post(
        "/api/hod/courses/manage",
        json={"action": "add", "course_data": {"course_code": "CS301", "name": "Compilers", "credits": "many"}},
        headers=headers,
    )
    code = await client.post(
        "/api/hod/courses/manage",
        json={"action": "edit", "course_data": {"id": school.course.id, "course_code": 301}},
        headers=headers,
    )
    course_id = await client.post(
        "/api/hod/courses/manage",
        json={"action": "edit", "course_data": {"id": "one", "name": "Renamed"}},
        headers=headers,
    )

    assert credits.status_code == 400
    assert credits.json()["message"] == "Invalid credits"
    assert code.status_code == 400
    assert code.json()["details"]["field"] == "course_code"
    assert course_id.status_code == 400
