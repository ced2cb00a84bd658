import pytest
from httpx import AsyncClient

from smis.core.cache import cache_manager
from smis.models import ClassModel
from smis.utils.cache_metrics import metrics
from tests.conftest import auth_headers


@pytest.mark.asyncio
async def test_courses_need_authentication(client: AsyncClient, school):
    response = await client.get(f"/api/courses/{school.course.id}")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_get_course_by_id_and_code(client: AsyncClient, school):
    headers = auth_headers(school.student)

    by_id = (await client.get(f"/api/courses/{school.course.id}", headers=headers)).json()["data"]
    by_code = (await client.get("/api/courses/code/cs101", headers=headers)).json()["data"]

    assert by_id["course_code"] == "CS101"
    assert by_code["id"] == school.course.id


@pytest.mark.asyncio
async def test_missing_course(client: AsyncClient, school):
    headers = auth_headers(school.teacher)

    assert (await client.get("/api/courses/9999", headers=headers)).status_code == 404
    assert (await client.get("/api/courses/code/NOPE1", headers=headers)).status_code == 404


@pytest.mark.asyncio
async def test_course_lookup_is_cached_and_invalidated_by_edits(client: AsyncClient, school):
    path = f"/api/courses/{school.course.id}"

    await client.get(path, headers=auth_headers(school.teacher))
    await client.get(path, headers=auth_headers(school.student))
    assert metrics.hits == 1
    assert any(key.startswith("courses:") for key in cache_manager.memory.keys())

    response = await client.post(
        "/api/hod/courses/manage",
        json={"action": "edit", "course_data": {"id": school.course.id, "name": "Programming I"}},
        headers=auth_headers(school.hod),
    )
    assert response.status_code == 200
    assert not any(key.startswith("courses:") for key in cache_manager.memory.keys())

    course = (await client.get(path, headers=auth_headers(school.student))).json()["data"]
    assert course["name"] == "Programming I"


@pytest.mark.asyncio
async def test_list_classes(client: AsyncClient, school, make_department, db_session):
    other = await make_department()
    db_session.add(ClassModel(name="Math Year 1", academic_year="2026-2027", department_id=other.id, students=[]))
    await db_session.commit()
    headers = auth_headers(school.teacher)

    everything = (await client.get("/api/classes/", headers=headers)).json()["data"]
    filtered = (await client.get(
        "/api/classes/", params={"department_id": school.department.id}, headers=headers
    )).json()["data"]

    assert {c["name"] for c in everything} == {"CS Year 1", "Math Year 1"}
    assert [c["name"] for c in filtered] == ["CS Year 1"]
    assert filtered[0]["student_count"] == 2


@pytest.mark.asyncio
async def test_class_list_refreshes_after_class_created(client: AsyncClient, school):
    headers = auth_headers(school.teacher)
    assert len((await client.get("/api/classes/", headers=headers)).json()["data"]) == 1

    response = await client.post(
        "/api/hod/classes/create",
        json={"name": "CS Year 2", "academic_year": "2026-2027"},
        headers=auth_headers(school.hod),
    )
    assert response.status_code == 201

    assert len((await client.get("/api/classes/", headers=headers)).json()["data"]) == 2


@pytest.mark.asyncio
async def test_class_detail(client: AsyncClient, school):
    response = await client.get(f"/api/classes/{school.class_obj.id}", headers=auth_headers(school.teacher))

    data = response.json()["data"]
    assert {s["id"] for s in data["student_details"]} == {s.id for s in school.students}
    assert [c["course_code"] for c in data["courses"]] == ["CS101"]


@pytest.mark.asyncio
async def test_missing_class(client: AsyncClient, school):
    response = await client.get("/api/classes/9999", headers=auth_headers(school.teacher))

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_student_classes(client: AsyncClient, school, make_student):
    loner = await make_student(school.department)

    own = await client.get(f"/api/classes/student/{school.student.id}", headers=auth_headers(school.student))
    others = await client.get(f"/api/classes/student/{school.students[1].id}", headers=auth_headers(school.student))
    by_staff = await client.get(f"/api/classes/student/{loner.id}", headers=auth_headers(school.teacher))

    assert [c["id"] for c in own.json()["data"]] == [school.class_obj.id]
    assert others.status_code == 403
    assert by_staff.json()["data"] == []
