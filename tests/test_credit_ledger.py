from __future__ import annotations

from uuid import uuid4

import pytest

from fakes import FakeBillingRepository, make_actor, make_package
from lessonbook.core.enums import PackageStatusEnum, RoleEnum
from lessonbook.modules.billing.schemas import PackageCreate
from lessonbook.modules.billing.service import BillingService
from lessonbook.shared.exceptions import (
    BusinessRuleException,
    ConflictException,
    NoCreditsAvailableException,
    NotFoundException,
    UnauthorizedException,
)


def make_service(*packages) -> tuple[BillingService, FakeBillingRepository]:
    repository = FakeBillingRepository(list(packages))
    return BillingService(repository), repository


@pytest.mark.asyncio
async def test_charge_completes_package_on_last_credit() -> None:
    package = make_package(uuid4(), lessons_total=10, lessons_used=9)
    service, _ = make_service(package)

    await service.charge_credit(package.id)

    assert package.lessons_used == 10
    assert package.lessons_left == 0
    assert package.status == PackageStatusEnum.COMPLETED


@pytest.mark.asyncio
async def test_charge_on_exhausted_package_fails() -> None:
    package = make_package(uuid4(), lessons_total=3, lessons_used=3, status=PackageStatusEnum.COMPLETED)
    service, _ = make_service(package)

    with pytest.raises(NoCreditsAvailableException):
        await service.charge_credit(package.id)
    assert package.lessons_used == 3


@pytest.mark.asyncio
async def test_zero_total_package_is_never_exhausted() -> None:
    package = make_package(uuid4(), lessons_total=0)
    service, _ = make_service(package)

    await service.charge_credit(package.id)

    assert package.lessons_used == 1
    assert package.status == PackageStatusEnum.ACTIVE


@pytest.mark.asyncio
async def test_refund_reactivates_completed_package_and_floors_at_zero() -> None:
    package = make_package(uuid4(), lessons_total=2, lessons_used=2, status=PackageStatusEnum.COMPLETED)
    service, _ = make_service(package)

    await service.refund_credit(package.id)
    assert package.lessons_used == 1
    assert package.status == PackageStatusEnum.ACTIVE

    await service.refund_credit(package.id)
    await service.refund_credit(package.id)
    assert package.lessons_used == 0


@pytest.mark.asyncio
async def test_refund_on_superseded_package_keeps_single_active_package() -> None:
    student_id = uuid4()
    old = make_package(student_id, lessons_total=5, lessons_used=5, status=PackageStatusEnum.COMPLETED)
    current = make_package(student_id, lessons_total=10, lessons_used=2)
    service, repository = make_service(old, current)

    await service.refund_credit(old.id)

    assert old.lessons_used == 4
    assert old.status == PackageStatusEnum.COMPLETED
    active = [p for p in repository.packages if p.status == PackageStatusEnum.ACTIVE]
    assert active == [current]


@pytest.mark.asyncio
async def test_unknown_package_is_not_found() -> None:
    service, _ = make_service()

    with pytest.raises(NotFoundException):
        await service.charge_credit(uuid4())
    with pytest.raises(NotFoundException):
        await service.refund_credit(uuid4())


@pytest.mark.asyncio
async def test_remove_package_revokes_remaining_credits() -> None:
    admin = make_actor(role=RoleEnum.ADMIN)
    package = make_package(uuid4(), lessons_total=8, lessons_used=3)
    service, _ = make_service(package)

    with pytest.raises(UnauthorizedException):
        await service.remove_package(package.id, make_actor())

    await service.remove_package(package.id, admin)
    assert package.lessons_used == 8
    assert package.status == PackageStatusEnum.COMPLETED

    with pytest.raises(ConflictException):
        await service.remove_package(package.id, admin)


@pytest.mark.asyncio
async def test_activate_package_rules() -> None:
    admin = make_actor(role=RoleEnum.ADMIN)
    student_id = uuid4()
    current = make_package(student_id, lessons_total=4, lessons_used=2)
    service, repository = make_service(current)

    with pytest.raises(BusinessRuleException):
        await service.activate_package(PackageCreate(student_id=student_id, lessons_total=10), admin)

    current.lessons_used = 4
    created = await service.activate_package(
        PackageCreate(student_id=student_id, lessons_total=10),
        admin,
    )

    assert current.status == PackageStatusEnum.COMPLETED
    assert created.status == PackageStatusEnum.ACTIVE
    assert await repository.get_active_package(student_id) is created

    with pytest.raises(UnauthorizedException):
        await service.activate_package(PackageCreate(student_id=student_id, lessons_total=1), make_actor())


@pytest.mark.asyncio
async def test_students_only_see_their_own_packages() -> None:
    student = make_actor()
    package = make_package(student.id, lessons_total=4)
    service, _ = make_service(package)

    assert await service.get_active_package(student.id, student) is package
    items, total = await service.list_student_packages(student.id, student, limit=50, offset=0)
    assert total == 1
    assert items == [package]

    with pytest.raises(UnauthorizedException):
        await service.get_active_package(student.id, make_actor())
    with pytest.raises(NotFoundException):
        await service.get_active_package(uuid4(), make_actor(role=RoleEnum.ADMIN))
