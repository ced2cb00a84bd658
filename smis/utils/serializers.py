# smis/utils/serializers.py
"""Hand-built JSON representations of ORM rows."""
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict, Optional


def iso(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (date, datetime, time)):
        return value.isoformat()
    return str(value)


def money(value: Any) -> float:
    if value is None:
        return 0.0
    if isinstance(value, Decimal):
        return float(value.quantize(Decimal("0.01")))
    return round(float(value), 2)


def serialize_department(department) -> Dict[str, Any]:
    return {
        "id": department.id,
        "name": department.name,
        "code": department.code,
        "description": department.description,
        "head_id": department.head_id,
        "status": department.status,
        "created_at": iso(department.created_at),
    }


def serialize_user(user) -> Dict[str, Any]:
    return {
        "id": user.id,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "email": user.email,
        "role": user.role,
        "department_id": user.department_id,
        "staff_id": user.staff_id,
        "phone": user.phone,
        "qualifications": user.qualifications,
        "subjects": user.subjects or [],
        "is_active": user.is_active,
        "user_type": "staff",
        "last_login": iso(user.last_login),
        "created_at": iso(user.created_at),
    }


def serialize_student(student) -> Dict[str, Any]:
    return {
        "id": student.id,
        "first_name": student.first_name,
        "last_name": student.last_name,
        "email": student.email,
        "role": "student",
        "student_number": student.student_number,
        "department_id": student.department_id,
        "phone": student.phone,
        "address": student.address,
        "date_of_birth": iso(student.date_of_birth),
        "gender": student.gender,
        "enrollment_year": student.enrollment_year,
        "current_year": student.current_year,
        "enrollment_date": iso(student.enrollment_date),
        "graduation_date": iso(student.graduation_date),
        "status": student.status,
        "is_active": student.is_active,
        "user_type": "student",
        "last_login": iso(student.last_login),
        "created_at": iso(student.created_at),
    }


def serialize_course(course) -> Dict[str, Any]:
    return {
        "id": course.id,
        "course_code": course.course_code,
        "name": course.name,
        "description": course.description,
        "credits": course.credits,
        "semester": course.semester,
        "department_id": course.department_id,
    }


def serialize_class(class_obj) -> Dict[str, Any]:
    return {
        "id": class_obj.id,
        "name": class_obj.name,
        "academic_year": class_obj.academic_year,
        "start_date": iso(class_obj.start_date),
        "end_date": iso(class_obj.end_date),
        "department_id": class_obj.department_id,
        "students": class_obj.roster(),
        "student_count": len(class_obj.roster()),
        "is_active": class_obj.is_active,
        "created_by": class_obj.created_by,
    }


def serialize_timetable(entry) -> Dict[str, Any]:
    return {
        "id": entry.id,
        "course_id": entry.course_id,
        "teacher_id": entry.teacher_id,
        "class_id": entry.class_id,
        "day_of_week": entry.day_of_week,
        "start_time": iso(entry.start_time),
        "end_time": iso(entry.end_time),
        "room": entry.room,
        "semester": entry.semester,
        "academic_year": entry.academic_year,
        "status": entry.status,
    }


def serialize_grade(grade) -> Dict[str, Any]:
    return {
        "id": grade.id,
        "student_id": grade.student_id,
        "course_id": grade.course_id,
        "teacher_id": grade.teacher_id,
        "grade": grade.grade,
        "score": grade.score,
        "max_score": grade.max_score,
        "assessment_type": grade.assessment_type,
        "semester": grade.semester,
        "year": grade.year,
        "date_given": iso(grade.date_given),
        "comments": grade.comments,
        "status": grade.status,
    }


def serialize_attendance(record) -> Dict[str, Any]:
    return {
        "id": record.id,
        "student_id": record.student_id,
        "course_id": record.course_id,
        "teacher_id": record.teacher_id,
        "date": iso(record.date),
        "status": record.status,
        "notes": record.notes,
        "approval_status": record.approval_status,
    }


def serialize_fee(fee) -> Dict[str, Any]:
    return {
        "id": fee.id,
        "student_id": fee.student_id,
        "fee_type": fee.fee_type,
        "amount": money(fee.amount),
        "description": fee.description,
        "due_date": iso(fee.due_date),
        "paid_date": iso(fee.paid_date),
        "status": fee.status,
        "payment_method": fee.payment_method,
        "transaction_id": fee.transaction_id,
        "created_at": iso(fee.created_at),
    }


def serialize_notification(notification) -> Dict[str, Any]:
    return {
        "id": notification.id,
        "sender_id": notification.sender_id,
        "user_id": notification.user_id,
        "recipient_type": notification.recipient_type,
        "type": notification.type,
        "title": notification.title,
        "message": notification.message,
        "data": notification.data,
        "is_read": notification.is_read,
        "created_at": iso(notification.created_at),
    }


def serialize_event(event) -> Dict[str, Any]:
    return {
        "id": event.id,
        "event_name": event.event_name,
        "event_date": iso(event.event_date),
        "event_type": event.event_type,
        "description": event.description,
        "created_by": event.created_by,
    }
