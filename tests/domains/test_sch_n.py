# tests/domains/test_sch_n.py

"""
'sch' 도메인 (시프트 및 근무 일정) 관련 API 엔드포인트에 대한 통합 테스트 모듈입니다.
"""

import uuid
from datetime import date, datetime

import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from app.domains.ctr import models as ctr_models
from app.domains.sch import crud as sch_crud
from app.domains.sch import models as sch_models
from app.domains.usr import models as usr_models

OVERNIGHT_MESSAGE = "Overnight shifts must start in the evening (from 17:00) and end in the morning (by 12:00)"
ASSIGNED_SINCE = datetime(2024, 1, 1)


@pytest_asyncio.fixture(scope="function")
async def assigned_technicians(
    work_center_factory,
    test_center: ctr_models.ServiceCenter,
    test_technician_user: usr_models.Account,
    test_other_technician: usr_models.Account,
):
    """두 TECHNICIAN 을 2024-01-01 부터 무기한으로 test_center 에 배정합니다."""
    await work_center_factory(test_technician_user.id, test_center.id, start=ASSIGNED_SINCE)
    await work_center_factory(test_other_technician.id, test_center.id, start=ASSIGNED_SINCE)
    return test_technician_user, test_other_technician


async def _create_schedules(client: AsyncClient, shift_id, employee_ids, day: str = "2025-01-06"):
    payload = {"shift_id": str(shift_id), "employee_ids": [str(e) for e in employee_ids], "date": day}
    return await client.post("/api/v1/sch/work-schedules", json=payload)


# =============================================================================
# 1. 시프트 (Shift) 엔드포인트 테스트
# =============================================================================
@pytest.mark.asyncio
async def test_create_overnight_shift_success(admin_client: AsyncClient, test_center: ctr_models.ServiceCenter):
    print("\n--- Running test_create_overnight_shift_success ---")
    payload = {
        "name": "Night",
        "start_time": "22:00:00",
        "end_time": "06:00:00",
        "maximum_slot": 2,
        "center_id": str(test_center.id),
        "start_date": "2025-01-06",
        "end_date": "2025-01-19",
        "repeat_days": [3, 1],
    }
    response = await admin_client.post("/api/v1/sch/shifts", json=payload)
    print(f"Response JSON: {response.json()}")

    assert response.status_code == 201
    created = response.json()
    assert created["start_time"] == "22:00:00"
    assert created["end_time"] == "06:00:00"
    assert created["repeat_days"] == [1, 3]
    assert created["status"] == "ACTIVE"
    assert created["center"]["name"] == test_center.name


@pytest.mark.asyncio
async def test_create_shift_invalid_times(admin_client: AsyncClient, test_center: ctr_models.ServiceCenter):
    base = {"name": "Bad", "maximum_slot": 2, "center_id": str(test_center.id)}

    response = await admin_client.post("/api/v1/sch/shifts", json={**base, "start_time": "10:00:00", "end_time": "08:00:00"})
    assert response.status_code == 400
    assert response.json()["detail"]["errors"]["end_time"] == OVERNIGHT_MESSAGE

    response = await admin_client.post("/api/v1/sch/shifts", json={**base, "start_time": "09:00:00", "end_time": "09:00:00"})
    assert response.status_code == 400
    assert response.json()["detail"]["errors"]["end_time"] == "Start time and end time cannot be the same"


@pytest.mark.asyncio
async def test_create_shift_invalid_slot_and_repeat_days(admin_client: AsyncClient, test_center: ctr_models.ServiceCenter):
    base = {"name": "Slots", "start_time": "08:00:00", "end_time": "12:00:00", "center_id": str(test_center.id)}

    response = await admin_client.post("/api/v1/sch/shifts", json={**base, "maximum_slot": 51})
    assert response.status_code == 400
    assert "maximum_slot" in response.json()["detail"]["errors"]

    response = await admin_client.post("/api/v1/sch/shifts", json={**base, "maximum_slot": 2, "repeat_days": [1, 1]})
    assert response.status_code == 400
    assert "repeat_days" in response.json()["detail"]["errors"]


@pytest.mark.asyncio
async def test_create_shift_duplicate_name_in_center(
    admin_client: AsyncClient,
    shift_factory,
    test_center: ctr_models.ServiceCenter,
    test_other_center: ctr_models.ServiceCenter,
):
    await shift_factory(test_center.id, name="Morning")
    payload = {"name": "Morning", "start_time": "07:00:00", "end_time": "11:00:00", "maximum_slot": 2}

    same_center = await admin_client.post("/api/v1/sch/shifts", json={**payload, "center_id": str(test_center.id)})
    assert same_center.status_code == 409

    other_center = await admin_client.post("/api/v1/sch/shifts", json={**payload, "center_id": str(test_other_center.id)})
    assert other_center.status_code == 201


@pytest.mark.asyncio
async def test_update_shift_revalidates_merged_times(
    admin_client: AsyncClient, shift_factory, test_center: ctr_models.ServiceCenter
):
    shift = await shift_factory(test_center.id)

    too_short = await admin_client.patch(f"/api/v1/sch/shifts/{shift.id}", json={"end_time": "08:30:00"})
    assert too_short.status_code == 400
    assert too_short.json()["detail"]["errors"]["end_time"] == "Shift duration must be at least 1 hour"

    ok = await admin_client.patch(f"/api/v1/sch/shifts/{shift.id}", json={"end_time": "12:00:00", "maximum_slot": 5})
    assert ok.status_code == 200
    assert ok.json()["end_time"] == "12:00:00"
    assert ok.json()["maximum_slot"] == 5


@pytest.mark.asyncio
async def test_update_shift_cannot_lower_slot_below_assigned(
    admin_client: AsyncClient,
    shift_factory,
    assigned_technicians,
    test_center: ctr_models.ServiceCenter,
):
    """이미 배정된 인원보다 정원을 낮출 수 없습니다."""
    tech, other = assigned_technicians
    shift = await shift_factory(test_center.id, maximum_slot=3)
    assert (await _create_schedules(admin_client, shift.id, [tech.id, other.id], day="2026-01-06")).status_code == 201
    assert (await _create_schedules(admin_client, shift.id, [tech.id], day="2026-01-07")).status_code == 201

    lowered = await admin_client.patch(f"/api/v1/sch/shifts/{shift.id}", json={"maximum_slot": 1})
    assert lowered.status_code == 409
    detail = lowered.json()["detail"]
    assert detail["message"] == "Shift capacity exceeded"
    assert "2 employees assigned on 2026-01-06" in detail["errors"]["maximum_slot"]

    unchanged = await admin_client.get(f"/api/v1/sch/shifts/{shift.id}")
    assert unchanged.json()["maximum_slot"] == 3

    exact = await admin_client.patch(f"/api/v1/sch/shifts/{shift.id}", json={"maximum_slot": 2})
    assert exact.status_code == 200
    assert exact.json()["maximum_slot"] == 2


@pytest.mark.asyncio
async def test_delete_shift_lifecycle(
    admin_client: AsyncClient,
    shift_factory,
    assigned_technicians,
    test_center: ctr_models.ServiceCenter,
):
    """근무 일정이 있으면 비활성화 불가, 없으면 INACTIVE 전환, 다시 요청하면 400."""
    tech, _ = assigned_technicians
    shift = await shift_factory(test_center.id)
    created = await _create_schedules(admin_client, shift.id, [tech.id])
    assert created.status_code == 201

    blocked = await admin_client.delete(f"/api/v1/sch/shifts/{shift.id}")
    assert blocked.status_code == 400
    assert blocked.json()["detail"]["message"] == "Cannot delete shift with assigned work schedules"

    removed = await admin_client.delete(f"/api/v1/sch/work-schedules/{created.json()[0]['id']}")
    assert removed.status_code == 200

    deactivated = await admin_client.delete(f"/api/v1/sch/shifts/{shift.id}")
    assert deactivated.status_code == 200
    assert deactivated.json()["status"] == "INACTIVE"

    again = await admin_client.delete(f"/api/v1/sch/shifts/{shift.id}")
    assert again.status_code == 400


# =============================================================================
# 2. 단일 날짜 배정 (create_assignment) 테스트
# =============================================================================
@pytest.mark.asyncio
async def test_create_assignment_success(
    admin_client: AsyncClient,
    shift_factory,
    assigned_technicians,
    test_center: ctr_models.ServiceCenter,
):
    print("\n--- Running test_create_assignment_success ---")
    tech, other = assigned_technicians
    shift = await shift_factory(test_center.id)

    response = await _create_schedules(admin_client, shift.id, [tech.id, other.id])
    print(f"Response JSON: {response.json()}")

    assert response.status_code == 201
    entries = response.json()
    assert len(entries) == 2
    assert {e["employee_id"] for e in entries} == {str(tech.id), str(other.id)}
    assert all(e["date"] == "2025-01-06" for e in entries)
    assert entries[0]["shift"]["center"]["name"] == test_center.name
    assert entries[0]["shift"]["start_time"] == "08:00:00"


@pytest.mark.asyncio
async def test_create_assignment_capacity_exceeded(
    admin_client: AsyncClient,
    shift_factory,
    assigned_technicians,
    test_center: ctr_models.ServiceCenter,
):
    tech, other = assigned_technicians
    shift = await shift_factory(test_center.id, maximum_slot=1)
    assert (await _create_schedules(admin_client, shift.id, [tech.id])).status_code == 201

    response = await _create_schedules(admin_client, shift.id, [other.id])
    assert response.status_code == 409
    detail = response.json()["detail"]
    assert detail["message"] == "Shift capacity exceeded"
    message = detail["errors"]["employee_ids"]
    assert "at most 1" in message
    assert "1 already assigned" in message
    assert "1 requested" in message
    assert "only 0 available" in message


@pytest.mark.asyncio
async def test_create_assignment_duplicate(
    admin_client: AsyncClient,
    shift_factory,
    assigned_technicians,
    test_center: ctr_models.ServiceCenter,
):
    tech, _ = assigned_technicians
    shift = await shift_factory(test_center.id)
    assert (await _create_schedules(admin_client, shift.id, [tech.id])).status_code == 201

    response = await _create_schedules(admin_client, shift.id, [tech.id])
    assert response.status_code == 409
    errors = response.json()["detail"]["errors"]
    assert "Minh" in errors["date.2025-01-06"]


@pytest.mark.asyncio
async def test_create_assignment_requires_center_assignment(
    admin_client: AsyncClient,
    shift_factory,
    work_center_factory,
    test_technician_user: usr_models.Account,
    test_center: ctr_models.ServiceCenter,
):
    """배정 기간이 근무 날짜를 포함하지 않으면 거부됩니다."""
    await work_center_factory(
        test_technician_user.id, test_center.id, start=datetime(2025, 2, 1), end=datetime(2025, 2, 28)
    )
    shift = await shift_factory(test_center.id)

    response = await _create_schedules(admin_client, shift.id, [test_technician_user.id], day="2025-01-06")
    assert response.status_code == 400
    message = response.json()["detail"]["errors"]["work_center"]
    assert f'not assigned to service center "{test_center.name}" on 2025-01-06' in message

    inside = await _create_schedules(admin_client, shift.id, [test_technician_user.id], day="2025-02-10")
    assert inside.status_code == 201


@pytest.mark.asyncio
async def test_create_assignment_rejects_ineligible_employees(
    admin_client: AsyncClient,
    shift_factory,
    assigned_technicians,
    test_customer_user: usr_models.Account,
    test_center: ctr_models.ServiceCenter,
):
    tech, _ = assigned_technicians
    shift = await shift_factory(test_center.id)

    role = await _create_schedules(admin_client, shift.id, [tech.id, test_customer_user.id])
    assert role.status_code == 400
    assert "This employee has role CUSTOMER" in role.json()["detail"]["errors"]["employee_ids.1"]

    missing = await _create_schedules(admin_client, shift.id, [uuid.uuid4()])
    assert missing.status_code == 404

    duplicated = await _create_schedules(admin_client, shift.id, [tech.id, tech.id])
    assert duplicated.status_code == 400


@pytest.mark.asyncio
async def test_create_assignment_shift_state(
    admin_client: AsyncClient,
    shift_factory,
    assigned_technicians,
    test_center: ctr_models.ServiceCenter,
):
    tech, _ = assigned_technicians
    inactive = await shift_factory(test_center.id, status=sch_models.ShiftStatus.INACTIVE)

    response = await _create_schedules(admin_client, inactive.id, [tech.id])
    assert response.status_code == 400
    assert "shift_id" in response.json()["detail"]["errors"]

    unknown = await _create_schedules(admin_client, uuid.uuid4(), [tech.id])
    assert unknown.status_code == 404


# =============================================================================
# 3. 반복 배정 (cyclic) 테스트
# =============================================================================
@pytest.mark.asyncio
async def test_cyclic_assignment_expands_repeat_days(
    admin_client: AsyncClient,
    shift_factory,
    assigned_technicians,
    test_center: ctr_models.ServiceCenter,
):
    """2025-01-06 ~ 2025-01-19, 월/수 반복 → 1월 6, 8, 13, 15일"""
    print("\n--- Running test_cyclic_assignment_expands_repeat_days ---")
    tech, _ = assigned_technicians
    shift = await shift_factory(
        test_center.id, start_date=date(2025, 1, 6), end_date=date(2025, 1, 19), repeat_days=[1, 3]
    )

    response = await admin_client.post(
        "/api/v1/sch/work-schedules/cyclic", json={"shift_id": str(shift.id), "employee_ids": [str(tech.id)]}
    )
    print(f"Response JSON: {response.json()}")

    assert response.status_code == 201
    assert [e["date"] for e in response.json()] == ["2025-01-06", "2025-01-08", "2025-01-13", "2025-01-15"]


@pytest.mark.asyncio
async def test_cyclic_assignment_capacity_aborts_everything(
    admin_client: AsyncClient,
    db_session: AsyncSession,
    shift_factory,
    assigned_technicians,
    test_center: ctr_models.ServiceCenter,
):
    tech, other = assigned_technicians
    shift = await shift_factory(
        test_center.id, maximum_slot=1, start_date=date(2025, 1, 6), end_date=date(2025, 1, 19), repeat_days=[1, 3]
    )
    assert (await _create_schedules(admin_client, shift.id, [other.id], day="2025-01-13")).status_code == 201

    response = await admin_client.post(
        "/api/v1/sch/work-schedules/cyclic", json={"shift_id": str(shift.id), "employee_ids": [str(tech.id)]}
    )
    assert response.status_code == 409
    assert "2025-01-13" in response.json()["detail"]["errors"]["employee_ids"]
    assert await sch_crud.work_schedule.count(db_session, shift_id=shift.id) == 1


@pytest.mark.asyncio
async def test_cyclic_assignment_lists_all_duplicates(
    admin_client: AsyncClient,
    shift_factory,
    assigned_technicians,
    test_center: ctr_models.ServiceCenter,
):
    tech, _ = assigned_technicians
    shift = await shift_factory(
        test_center.id, start_date=date(2025, 1, 6), end_date=date(2025, 1, 19), repeat_days=[1, 3]
    )
    assert (await _create_schedules(admin_client, shift.id, [tech.id], day="2025-01-08")).status_code == 201
    assert (await _create_schedules(admin_client, shift.id, [tech.id], day="2025-01-15")).status_code == 201

    response = await admin_client.post(
        "/api/v1/sch/work-schedules/cyclic", json={"shift_id": str(shift.id), "employee_ids": [str(tech.id)]}
    )
    assert response.status_code == 409
    assert set(response.json()["detail"]["errors"]) == {"date.2025-01-08", "date.2025-01-15"}


@pytest.mark.asyncio
async def test_cyclic_assignment_requires_pattern(
    admin_client: AsyncClient,
    shift_factory,
    assigned_technicians,
    test_center: ctr_models.ServiceCenter,
):
    tech, _ = assigned_technicians
    no_pattern = await shift_factory(test_center.id, name="Plain")
    no_dates = await shift_factory(
        test_center.id, name="Weekend", start_date=date(2025, 1, 6), end_date=date(2025, 1, 7), repeat_days=[6]
    )

    response = await admin_client.post(
        "/api/v1/sch/work-schedules/cyclic", json={"shift_id": str(no_pattern.id), "employee_ids": [str(tech.id)]}
    )
    assert response.status_code == 400
    assert set(response.json()["detail"]["errors"]) == {"start_date", "end_date", "repeat_days"}

    response = await admin_client.post(
        "/api/v1/sch/work-schedules/cyclic", json={"shift_id": str(no_dates.id), "employee_ids": [str(tech.id)]}
    )
    assert response.status_code == 400
    assert response.json()["detail"]["errors"]["repeat_days"] == "No valid repeat days within the specified date range"


# =============================================================================
# 4. 배정 인원 교체 / 삭제 테스트
# =============================================================================
@pytest.mark.asyncio
async def test_replace_assignments_for_shift_date(
    admin_client: AsyncClient,
    shift_factory,
    assigned_technicians,
    test_center: ctr_models.ServiceCenter,
):
    tech, other = assigned_technicians
    shift = await shift_factory(test_center.id)
    created = await _create_schedules(admin_client, shift.id, [tech.id])
    url = f"/api/v1/sch/work-schedules/shifts/{shift.id}/dates/2025-01-06"

    same = await admin_client.put(url, json={"employee_ids": [str(tech.id)]})
    assert same.status_code == 200
    assert [e["id"] for e in same.json()] == [created.json()[0]["id"]]

    swapped = await admin_client.put(url, json={"employee_ids": [str(other.id)]})
    assert swapped.status_code == 200
    assert [e["employee_id"] for e in swapped.json()] == [str(other.id)]

    cleared = await admin_client.put(url, json={"employee_ids": []})
    assert cleared.status_code == 200
    assert cleared.json() == []


@pytest.mark.asyncio
async def test_replace_assignments_checks_new_total_capacity(
    admin_client: AsyncClient,
    shift_factory,
    assigned_technicians,
    test_center: ctr_models.ServiceCenter,
):
    tech, other = assigned_technicians
    shift = await shift_factory(test_center.id, maximum_slot=1)
    await _create_schedules(admin_client, shift.id, [tech.id])

    response = await admin_client.put(
        f"/api/v1/sch/work-schedules/shifts/{shift.id}/dates/2025-01-06",
        json={"employee_ids": [str(tech.id), str(other.id)]},
    )
    assert response.status_code == 409
    assert response.json()["detail"]["message"] == "Shift capacity exceeded"


@pytest.mark.asyncio
async def test_delete_work_schedule(
    admin_client: AsyncClient,
    shift_factory,
    assigned_technicians,
    test_center: ctr_models.ServiceCenter,
):
    tech, _ = assigned_technicians
    shift = await shift_factory(test_center.id)
    created = await _create_schedules(admin_client, shift.id, [tech.id])
    entry_id = created.json()[0]["id"]

    response = await admin_client.delete(f"/api/v1/sch/work-schedules/{entry_id}")
    assert response.status_code == 200
    assert response.json() == {"message": "Work schedule deleted successfully", "id": entry_id}

    again = await admin_client.delete(f"/api/v1/sch/work-schedules/{entry_id}")
    assert again.status_code == 404


# =============================================================================
# 5. 역할별 조회 범위 테스트
# =============================================================================
@pytest.mark.asyncio
async def test_technician_reads_only_own_schedules(
    admin_client: AsyncClient,
    technician_client: AsyncClient,
    shift_factory,
    assigned_technicians,
    test_center: ctr_models.ServiceCenter,
    test_other_center: ctr_models.ServiceCenter,
):
    tech, other = assigned_technicians
    shift = await shift_factory(test_center.id)
    await shift_factory(test_other_center.id, name="Elsewhere")
    created = await _create_schedules(admin_client, shift.id, [tech.id, other.id])
    by_employee = {e["employee_id"]: e["id"] for e in created.json()}

    listed = await technician_client.get("/api/v1/sch/work-schedules")
    assert listed.status_code == 200
    assert [e["employee_id"] for e in listed.json()] == [str(tech.id)]

    forbidden = await technician_client.get(f"/api/v1/sch/work-schedules/{by_employee[str(other.id)]}")
    assert forbidden.status_code == 403

    own = await technician_client.get(f"/api/v1/sch/work-schedules/{by_employee[str(tech.id)]}")
    assert own.status_code == 200

    shifts = await technician_client.get("/api/v1/sch/shifts")
    assert [s["id"] for s in shifts.json()] == [str(shift.id)]

    write = await _create_schedules(technician_client, shift.id, [tech.id], day="2025-01-07")
    assert write.status_code == 403


@pytest.mark.asyncio
async def test_staff_reads_schedules_of_assigned_center(
    admin_client: AsyncClient,
    staff_client: AsyncClient,
    work_center_factory,
    shift_factory,
    assigned_technicians,
    test_staff_user: usr_models.Account,
    test_center: ctr_models.ServiceCenter,
):
    await work_center_factory(test_staff_user.id, test_center.id, start=ASSIGNED_SINCE)
    tech, other = assigned_technicians
    shift = await shift_factory(test_center.id)
    assert (await _create_schedules(admin_client, shift.id, [tech.id, other.id])).status_code == 201

    listed = await staff_client.get("/api/v1/sch/work-schedules", params={"center_id": str(test_center.id)})
    assert listed.status_code == 200
    assert len(listed.json()) == 2

    delete = await staff_client.delete(f"/api/v1/sch/work-schedules/{listed.json()[0]['id']}")
    assert delete.status_code == 403


@pytest.mark.asyncio
async def test_list_schedules_date_range_filter(
    admin_client: AsyncClient,
    shift_factory,
    assigned_technicians,
    test_center: ctr_models.ServiceCenter,
):
    tech, _ = assigned_technicians
    shift = await shift_factory(test_center.id)
    for day in ("2025-01-06", "2025-01-07", "2025-01-20"):
        assert (await _create_schedules(admin_client, shift.id, [tech.id], day=day)).status_code == 201

    response = await admin_client.get(
        "/api/v1/sch/work-schedules", params={"date_from": "2025-01-06", "date_to": "2025-01-10"}
    )
    assert response.status_code == 200
    assert [e["date"] for e in response.json()] == ["2025-01-06", "2025-01-07"]
