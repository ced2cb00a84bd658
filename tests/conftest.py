"""
SMIS - Test Configuration and Fixtures
"""
import os
from datetime import date, time
from types import SimpleNamespace
from typing import AsyncGenerator

import pytest
from faker import Faker
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set testing environment before the app reads its settings
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///:memory:'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['CACHE_BACKEND'] = 'memory'
os.environ['LOG_LEVEL'] = 'warning'

from smis.main import app
from smis.core.cache import cache_manager
from smis.core.database import get_db
from smis.core.performance_monitor import performance_metrics
from smis.core.rate_limiter import rate_limiter
from smis.core.security import create_user_token, get_password_hash
from smis.models import (
    Base, ClassCourse, ClassModel, Course, CourseEnrollment, Department, Student, TimetableEntry, User,
)
from smis.utils.cache_metrics import metrics
from smis.utils.constants import ApprovalStatus, UserRole, UserType

fake = Faker()

PASSWORD = 'Password123!'


@pytest.fixture(autouse=True)
def reset_global_state():
    """Module-level singletons outlive a test; start each one clean"""
    rate_limiter.reset()
    cache_manager.memory.clear()
    metrics.reset()
    performance_metrics.reset()
    yield
    cache_manager.memory.clear()


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database for each test"""
    engine = create_async_engine(
        'sqlite+aiosqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    async with session_factory() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Test client sharing the test session with the app"""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


def auth_headers(account) -> dict:
    """Bearer header for a staff user or a student"""
    user_type = UserType.STUDENT.value if isinstance(account, Student) else UserType.STAFF.value
    token = create_user_token(account.id, account.role, user_type, account.email)
    return {'Authorization': f'Bearer {token}'}


async def _save(session: AsyncSession, obj):
    session.add(obj)
    await session.commit()
    await session.refresh(obj)
    return obj


@pytest.fixture
def make_department(db_session: AsyncSession):
    async def _make(code: str = None, name: str = None) -> Department:
        code = code or fake.unique.lexify('D???').upper()
        return await _save(db_session, Department(name=name or f'{code} Department', code=code))
    return _make


@pytest.fixture
def make_staff(db_session: AsyncSession):
    async def _make(role: UserRole, department: Department = None, **kwargs) -> User:
        user = User(
            first_name=kwargs.pop('first_name', fake.first_name()),
            last_name=kwargs.pop('last_name', fake.last_name()),
            email=kwargs.pop('email', fake.unique.email().lower()),
            password_hash=get_password_hash(kwargs.pop('password', PASSWORD)),
            role=role.value,
            department_id=department.id if department else None,
            subjects=[],
            **kwargs,
        )
        return await _save(db_session, user)
    return _make


@pytest.fixture
def make_student(db_session: AsyncSession):
    async def _make(department: Department, **kwargs) -> Student:
        student = Student(
            first_name=kwargs.pop('first_name', fake.first_name()),
            last_name=kwargs.pop('last_name', fake.last_name()),
            email=kwargs.pop('email', fake.unique.email().lower()),
            password_hash=get_password_hash(kwargs.pop('password', PASSWORD)),
            department_id=department.id,
            student_number=kwargs.pop('student_number', fake.unique.bothify('S#######')),
            **kwargs,
        )
        return await _save(db_session, student)
    return _make


@pytest.fixture
def make_course(db_session: AsyncSession):
    async def _make(department: Department, code: str = None, **kwargs) -> Course:
        course = Course(
            course_code=code or fake.unique.bothify('C###').upper(),
            name=kwargs.pop('name', fake.catch_phrase()[:100]),
            credits=kwargs.pop('credits', 3),
            semester=kwargs.pop('semester', 'Fall'),
            department_id=department.id,
            **kwargs,
        )
        return await _save(db_session, course)
    return _make


@pytest.fixture
def make_slot(db_session: AsyncSession):
    async def _make(course: Course, teacher: User, class_obj: ClassModel, day: str = 'Monday',
                    start: time = time(9, 0), end: time = time(10, 30), **kwargs) -> TimetableEntry:
        entry = TimetableEntry(
            course_id=course.id,
            teacher_id=teacher.id,
            class_id=class_obj.id,
            day_of_week=day,
            start_time=start,
            end_time=end,
            room=kwargs.pop('room', 'B-101'),
            semester=kwargs.pop('semester', 'Fall'),
            academic_year=kwargs.pop('academic_year', '2026-2027'),
            status=kwargs.pop('status', ApprovalStatus.APPROVED.value),
            **kwargs,
        )
        return await _save(db_session, entry)
    return _make


@pytest.fixture
async def school(db_session, make_department, make_staff, make_student, make_course, make_slot):
    """One department with a full cast: staff, two students, a class, a course and its slot"""
    department = await make_department('CS', 'Computer Science')
    admin = await make_staff(UserRole.ADMIN)
    finance = await make_staff(UserRole.FINANCE)
    hod = await make_staff(UserRole.HOD, department)
    teacher = await make_staff(UserRole.TEACHER, department)
    department.head_id = hod.id

    students = [await make_student(department) for _ in range(2)]
    course = await make_course(department, 'CS101', name='Introduction to Programming')

    class_obj = await _save(db_session, ClassModel(
        name='CS Year 1',
        academic_year='2026-2027',
        department_id=department.id,
        students=[s.id for s in students],
        is_active=True,
        created_by=hod.id,
    ))
    db_session.add(ClassCourse(class_id=class_obj.id, course_id=course.id))
    for student in students:
        db_session.add(CourseEnrollment(student_id=student.id, course_id=course.id))
    await db_session.commit()

    slot = await make_slot(course, teacher, class_obj)

    return SimpleNamespace(
        department=department,
        admin=admin,
        finance=finance,
        hod=hod,
        teacher=teacher,
        students=students,
        student=students[0],
        course=course,
        class_obj=class_obj,
        slot=slot,
        today=date.today(),
    )
