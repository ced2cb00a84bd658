import pytest
from httpx import AsyncClient
from sqlalchemy import select

from smis.models import Student, TimetableEntry, User
from smis.utils.cache_metrics import metrics
from smis.utils.constants import UserRole
from tests.conftest import auth_headers


@pytest.mark.asyncio
async def test_admin_routes_reject_hod(client: AsyncClient, school):
    response = await client.get("/api/admin/stats", headers=auth_headers(school.hod))

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_staff_user(client: AsyncClient, school, db_session):
    response = await client.post(
        "/api/admin/users",
        json={
            "first_name": "Grace",
            "last_name": "Hopper",
            "email": "Grace@School.edu",
            "password": "compiler1",
            "role": "teacher",
            "department_id": school.department.id,
            "subjects": ["Compilers"],
        },
        headers=auth_headers(school.admin),
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["email"] == "grace@school.edu"
    assert data["user_type"] == "staff"

    user = (await db_session.execute(select(User).where(User.email == "grace@school.edu"))).scalar_one()
    assert user.password_hash != "compiler1"


@pytest.mark.asyncio
async def test_create_student_user(client: AsyncClient, school, db_session):
    response = await client.post(
        "/api/admin/users",
        json={
            "first_name": "Alan",
            "last_name": "Turing",
            "email": "alan@school.edu",
            "password": "enigma42",
            "role": "student",
            "department_id": school.department.id,
            "student_number": "S2026001",
        },
        headers=auth_headers(school.admin),
    )

    assert response.status_code == 201
    assert response.json()["data"]["user_type"] == "student"
    student = (await db_session.execute(select(Student).where(Student.email == "alan@school.edu"))).scalar_one()
    assert student.student_number == "S2026001"


@pytest.mark.asyncio
async def test_create_student_requires_department(client: AsyncClient, school):
    response = await client.post(
        "/api/admin/users",
        json={"first_name": "No", "last_name": "Dept", "email": "nodept@school.edu",
              "password": "secret12", "role": "student"},
        headers=auth_headers(school.admin),
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_create_user_duplicate_email(client: AsyncClient, school):
    response = await client.post(
        "/api/admin/users",
        json={"first_name": "Dup", "last_name": "Licate", "email": school.student.email,
              "password": "secret12", "role": "finance"},
        headers=auth_headers(school.admin),
    )

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_list_users_filters(client: AsyncClient, school):
    headers = auth_headers(school.admin)

    teachers = (await client.get("/api/admin/users", params={"role": "teacher"}, headers=headers)).json()["data"]
    assert [u["id"] for u in teachers["items"]] == [school.teacher.id]
    assert teachers["pagination"]["total"] == 1
    assert teachers["items"][0]["department_name"] == "Computer Science"

    students = (await client.get("/api/admin/users", params={"role": "student"}, headers=headers)).json()["data"]
    assert {u["id"] for u in students["items"]} == {s.id for s in school.students}

    found = (await client.get("/api/admin/users", params={"search": school.hod.email}, headers=headers)).json()["data"]
    assert [u["id"] for u in found["items"]] == [school.hod.id]

    in_department = (await client.get(
        "/api/admin/users", params={"department_id": school.department.id}, headers=headers
    )).json()["data"]
    assert {u["id"] for u in in_department["items"]} == {school.hod.id, school.teacher.id}


@pytest.mark.asyncio
async def test_list_users_pagination(client: AsyncClient, school):
    response = await client.get("/api/admin/users", params={"limit": 2, "page": 2}, headers=auth_headers(school.admin))

    pagination = response.json()["data"]["pagination"]
    assert pagination["total"] == 4
    assert pagination["total_pages"] == 2
    assert pagination["has_previous"] is True
    assert pagination["has_next"] is False


@pytest.mark.asyncio
async def test_search_treats_wildcards_literally(client: AsyncClient, school):
    response = await client.get("/api/admin/users", params={"search": "%"}, headers=auth_headers(school.admin))

    assert response.json()["data"]["items"] == []


@pytest.mark.asyncio
async def test_update_user(client: AsyncClient, school, db_session):
    response = await client.put(
        f"/api/admin/users/{school.teacher.id}",
        json={"role": "hod", "phone": "555-0199"},
        headers=auth_headers(school.admin),
    )

    assert response.status_code == 200
    await db_session.refresh(school.teacher)
    assert school.teacher.role == "hod"
    assert school.teacher.phone == "555-0199"


@pytest.mark.asyncio
async def test_update_student_via_user_type(client: AsyncClient, school):
    response = await client.put(
        f"/api/admin/users/{school.student.id}",
        params={"user_type": "student"},
        json={"first_name": "Renamed"},
        headers=auth_headers(school.admin),
    )

    assert response.status_code == 200
    assert response.json()["data"]["first_name"] == "Renamed"


@pytest.mark.asyncio
async def test_update_staff_to_student_role(client: AsyncClient, school):
    response = await client.put(
        f"/api/admin/users/{school.teacher.id}", json={"role": "student"}, headers=auth_headers(school.admin)
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_update_missing_user(client: AsyncClient, school):
    response = await client.put("/api/admin/users/9999", json={"phone": "1"}, headers=auth_headers(school.admin))

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_user(client: AsyncClient, school):
    headers = auth_headers(school.admin)

    response = await client.delete(f"/api/admin/users/{school.teacher.id}", headers=headers)
    assert response.status_code == 200

    # A deleted account can no longer authenticate
    response = await client.get("/api/teachers/profile", headers=auth_headers(school.teacher))
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_delete_own_account(client: AsyncClient, school):
    response = await client.delete(f"/api/admin/users/{school.admin.id}", headers=auth_headers(school.admin))

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_calendar_is_cached_until_a_write(client: AsyncClient, school):
    headers = auth_headers(school.admin)

    assert (await client.get("/api/admin/calendar", headers=headers)).json()["data"] == []
    assert (await client.get("/api/admin/calendar", headers=headers)).json()["data"] == []
    assert metrics.hits == 1

    response = await client.post(
        "/api/admin/calendar",
        json={"event_name": "Midterms", "event_date": "2026-10-20", "event_type": "exam"},
        headers=headers,
    )
    assert response.status_code == 201

    events = (await client.get("/api/admin/calendar", headers=headers)).json()["data"]
    assert [e["event_name"] for e in events] == ["Midterms"]


@pytest.mark.asyncio
async def test_calendar_rejects_unknown_event_type(client: AsyncClient, school):
    response = await client.post(
        "/api/admin/calendar",
        json={"event_name": "Party", "event_date": "2026-10-20", "event_type": "party"},
        headers=auth_headers(school.admin),
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_timetable_add_update_delete(client: AsyncClient, school, db_session):
    headers = auth_headers(school.admin)
    slot = {
        "course_id": school.course.id,
        "teacher_id": school.teacher.id,
        "class_id": school.class_obj.id,
        "day_of_week": "Wednesday",
        "start_time": "13:00",
        "end_time": "14:30",
        "room": "B-202",
        "semester": "Fall",
        "academic_year": "2026-2027",
    }

    response = await client.post("/api/admin/timetable", json={"action": "add", "timetable_data": slot}, headers=headers)
    assert response.status_code == 200
    added = response.json()["data"]
    assert added["status"] == "pending"
    assert added["start_time"] == "13:00:00"

    response = await client.post(
        "/api/admin/timetable",
        json={"action": "update", "timetable_data": {"id": added["id"], "room": "C-001"}},
        headers=headers,
    )
    assert response.json()["data"]["room"] == "C-001"

    response = await client.post(
        "/api/admin/timetable", json={"action": "delete", "timetable_data": {"id": added["id"]}}, headers=headers
    )
    assert response.status_code == 200
    entry = (await db_session.execute(select(TimetableEntry).where(TimetableEntry.id == added["id"]))).scalar_one()
    assert entry.is_deleted is True


@pytest.mark.asyncio
async def test_timetable_conflict(client: AsyncClient, school, make_course):
    # Same class on Monday morning, overlapping the existing 09:00-10:30 slot
    other_course = await make_course(school.department)
    slot = {
        "course_id": other_course.id,
        "teacher_id": school.hod.id,
        "class_id": school.class_obj.id,
        "day_of_week": "Monday",
        "start_time": "10:00",
        "end_time": "11:00",
        "semester": "Fall",
    }

    response = await client.post(
        "/api/admin/timetable", json={"action": "add", "timetable_data": slot}, headers=auth_headers(school.admin)
    )

    assert response.status_code == 409
    assert [c["id"] for c in response.json()["details"]["conflicts"]] == [school.slot.id]


@pytest.mark.asyncio
async def test_timetable_back_to_back_slots_do_not_conflict(client: AsyncClient, school):
    slot = {
        "course_id": school.course.id,
        "teacher_id": school.teacher.id,
        "class_id": school.class_obj.id,
        "day_of_week": "Monday",
        "start_time": "10:30",
        "end_time": "12:00",
        "semester": "Fall",
    }

    response = await client.post(
        "/api/admin/timetable", json={"action": "add", "timetable_data": slot}, headers=auth_headers(school.admin)
    )

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_timetable_rejects_bad_input(client: AsyncClient, school):
    headers = auth_headers(school.admin)
    slot = {
        "course_id": school.course.id,
        "teacher_id": school.teacher.id,
        "class_id": school.class_obj.id,
        "day_of_week": "Funday",
        "start_time": "10:00",
        "end_time": "11:00",
        "semester": "Fall",
    }

    bad_day = await client.post("/api/admin/timetable", json={"action": "add", "timetable_data": slot}, headers=headers)
    bad_action = await client.post("/api/admin/timetable", json={"action": "move", "timetable_data": slot}, headers=headers)
    reversed_times = await client.post(
        "/api/admin/timetable",
        json={"action": "add", "timetable_data": {**slot, "day_of_week": "Friday", "start_time": "12:00"}},
        headers=headers,
    )

    assert bad_day.status_code == 400
    assert bad_action.status_code == 400
    assert reversed_times.status_code == 400


@pytest.mark.asyncio
async def test_stats(client: AsyncClient, school):
    response = await client.get("/api/admin/stats", headers=auth_headers(school.admin))

    assert response.json()["data"] == {
        "total_users": 4,
        "total_students": 2,
        "total_teachers": 1,
        "total_departments": 1,
        "total_courses": 1,
    }


@pytest.mark.asyncio
async def test_departments(client: AsyncClient, school, make_staff):
    headers = auth_headers(school.admin)
    head = await make_staff(UserRole.HOD)

    assert [d["code"] for d in (await client.get("/api/admin/departments", headers=headers)).json()["data"]] == ["CS"]

    response = await client.post(
        "/api/admin/departments",
        json={"name": "Mathematics", "code": "math", "head_id": head.id},
        headers=headers,
    )
    assert response.status_code == 201
    assert response.json()["data"]["code"] == "MATH"

    codes = [d["code"] for d in (await client.get("/api/admin/departments", headers=headers)).json()["data"]]
    assert codes == ["CS", "MATH"]


@pytest.mark.asyncio
async def test_department_duplicate_code(client: AsyncClient, school):
    response = await client.post(
        "/api/admin/departments", json={"name": "Another CS", "code": "cs"}, headers=auth_headers(school.admin)
    )

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_timetable_rejects_malformed_ids(client: AsyncClient, school):
    headers = auth_headers(school.admin)
    slot = {
        "course_id": "CS101",
        "teacher_id": school.teacher.id,
        "class_id": school.class_obj.id,
        "day_of_week": "Friday",
        "start_time": "08:00",
        "end_time": "09:00",
        "semester": "Fall",
    }

    added = await client.post("/api/admin/timetable", json={"action": "add", "timetable_data": slot}, headers=headers)
    updated = await client.post(
        "/api/admin/timetable", json={"action": "update", "timetable_data": {"id": "first"}}, headers=headers
    )
    deleted = await client.post(
        "/api/admin/timetable", json={"action": "delete", "timetable_data": {"id": [school.slot.id]}}, headers=headers
    )

    assert added.status_code == 400
    assert added.json()["message"] == "Invalid course id"
    assert updated.status_code == 400
    assert deleted.status_code == 400


@pytest.mark.asyncio
async def test_timetable_accepts_numeric_strings(client: AsyncClient, school):
    slot = {
        "course_id": str(school.course.id),
        "teacher_id": school.teacher.id,
        "class_id": school.class_obj.id,
        "day_of_week": "Friday",
        "start_time": "08:00",
        "end_time": "09:00",
        "semester": "Fall",
    }

    response = await client.post(
        "/api/admin/timetable", json={"action": "add", "timetable_data": slot}, headers=auth_headers(school.admin)
    )

    assert response.status_code == 200
    assert response.json()["data"]["course_id"] == school.course.id
