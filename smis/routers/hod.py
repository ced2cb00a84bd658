"""Head of department endpoints, scoped to the HOD's own department."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.cache_decorators import invalidate_cache_pattern
from ..core.database import get_db
from ..core.dependencies import CurrentUser, get_current_user, get_hod_department
from ..schemas.academic_schemas import (
    ActivityApproval,
    ClassCoursesAdd,
    ClassCreate,
    ClassStudentsAdd,
    CourseManage,
    DepartmentTeachers,
    ReportFilters,
    TimetableApproval,
)
from ..schemas.notification_schemas import NotificationContent
from ..services.hod_service import HODService
from ..services.notification_service import NotificationService
from ..utils.responses import success_response
from ..utils.serializers import serialize_class

router = APIRouter(prefix="/api/hod", tags=["Head of Department"])


async def get_hod_service(
    department_id: int = Depends(get_hod_department),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> HODService:
    return HODService(db, department_id, current_user.id)


@router.get("/profile")
async def get_profile(service: HODService = Depends(get_hod_service)):
    return success_response(await service.get_profile())


@router.get("/teachers")
async def get_teachers(service: HODService = Depends(get_hod_service)):
    return success_response(await service.get_teachers())


@router.get("/teachers/{teacher_id}/departments")
async def get_teacher_departments(teacher_id: int, service: HODService = Depends(get_hod_service)):
    return success_response(await service.get_teacher_departments(teacher_id))


@router.get("/courses")
async def get_courses(service: HODService = Depends(get_hod_service)):
    return success_response(await service.get_courses())


@router.get("/classes/department")
async def get_department_classes(service: HODService = Depends(get_hod_service)):
    classes = await service.classes.list_classes(service.department_id)
    return success_response([serialize_class(c) for c in classes])


@router.get("/classes/{class_id}/students")
async def get_class_students(class_id: int, service: HODService = Depends(get_hod_service)):
    return success_response(await service.class_students(class_id))


@router.post("/activities/approve")
async def approve_activity(body: ActivityApproval, service: HODService = Depends(get_hod_service)):
    result = await service.approve_activity(body.activity_type, body.activity_id, body.approve)
    return success_response(result, f"Activity {result['status']}")


@router.post("/reports/{report_type}")
async def generate_report(
    report_type: str,
    filters: Optional[ReportFilters] = None,
    service: HODService = Depends(get_hod_service),
):
    filters = filters or ReportFilters()
    return success_response(await service.generate_report(report_type, filters.semester, filters.year))


@router.post("/courses/manage")
@invalidate_cache_pattern("courses", "classes")
async def manage_course(body: CourseManage, service: HODService = Depends(get_hod_service)):
    course = await service.manage_course(body.action, body.course_data)
    messages = {"add": "Course added successfully", "edit": "Course updated successfully",
                "delete": "Course deleted successfully"}
    return success_response(course, messages[body.action])


@router.post("/classes/create", status_code=201)
@invalidate_cache_pattern("classes")
async def create_class(body: ClassCreate, service: HODService = Depends(get_hod_service)):
    class_obj = await service.create_class(body.model_dump())
    return success_response(serialize_class(class_obj), "Class created successfully")


@router.post("/classes/add-students")
@invalidate_cache_pattern("classes")
async def add_class_students(body: ClassStudentsAdd, service: HODService = Depends(get_hod_service)):
    result = await service.add_class_students(body.class_id, body.student_ids)
    return success_response(result, "Students added to class")


@router.post("/classes/add-courses")
@invalidate_cache_pattern("classes")
async def add_class_courses(body: ClassCoursesAdd, service: HODService = Depends(get_hod_service)):
    result = await service.add_class_courses(body.class_id, body.course_ids)
    return success_response(result, "Courses added to class")


@router.post("/departments/add-teachers")
async def add_teachers(body: DepartmentTeachers, service: HODService = Depends(get_hod_service)):
    added = await service.add_teachers(body.teacher_ids)
    return success_response({"teacher_ids": added}, "Teachers added to department")


@router.post("/departments/remove-teachers")
async def remove_teachers(body: DepartmentTeachers, service: HODService = Depends(get_hod_service)):
    removed = await service.remove_teachers(body.teacher_ids)
    return success_response({"teacher_ids": removed}, "Teachers removed from department")


@router.post("/timetable/approve")
async def approve_timetable(body: TimetableApproval, service: HODService = Depends(get_hod_service)):
    updated = await service.approve_timetable(body.timetable_ids, body.approve)
    return success_response({"timetable_ids": updated},
                            "Timetable approved" if body.approve else "Timetable rejected")


@router.get("/stats")
async def get_stats(service: HODService = Depends(get_hod_service)):
    return success_response(await service.get_stats())


@router.get("/timetable")
async def get_timetable(semester: Optional[str] = Query(None), service: HODService = Depends(get_hod_service)):
    return success_response(await service.get_timetable(semester))


@router.post("/notifications/department", status_code=201)
async def notify_department(body: NotificationContent, service: HODService = Depends(get_hod_service)):
    """Notify every teacher of the department"""
    sent = await NotificationService(service.db).send_to_department_teachers(
        service.hod_id, service.department_id, body.model_dump()
    )
    return success_response({"recipients": sent}, f"Notification sent to {sent} teachers")
