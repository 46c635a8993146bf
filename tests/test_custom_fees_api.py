from decimal import Decimal

from sqlalchemy import select, update

from coursedesk.admissions.models.enrollments import Enrollment


async def test_custom_fee_resyncs_existing_enrollment(
    client, admin_headers, make_course, make_inquiry, make_enrollment
):
    course = await make_course(full_fee="15000")
    inquiry = await make_inquiry(course["id"])
    enrollment = await make_enrollment(inquiry["id"], fee_plan="full")

    assert Decimal(enrollment["total_fee"]) == Decimal("15000")

    response = await client.post(
        "/api/custom-fees/",
        json={
            "student_name": "Asha Patil",
            "contact_no": "9876543210",
            "course_id": course["id"],
            "custom_full_fee": "9000",
            "reason": "scholarship",
        },
        headers=admin_headers,
    )
    assert response.status_code == 201, response.text
    body = response.json()

    assert body["sync"] == {
        "matched": 1,
        "updated": 1,
        "unchanged": 0,
        "failed_enrollment_ids": [],
    }
    assert body["custom_fee"]["course"]["id"] == course["id"]
    assert body["custom_fee"]["created_by"] == "Admin"

    refreshed = await client.get(f"/api/enrollments/{enrollment['id']}", headers=admin_headers)
    assert Decimal(refreshed.json()["total_fee"]) == Decimal("9000")


async def test_resync_touches_only_the_same_student_and_course(
    client, admin_headers, make_course, make_inquiry, make_enrollment
):
    course_x = await make_course(full_fee="15000")
    course_y = await make_course(full_fee="20000")

    a_on_x = await make_enrollment((await make_inquiry(course_x["id"]))["id"])
    a_on_y = await make_enrollment((await make_inquiry(course_y["id"]))["id"])
    b_on_x = await make_enrollment(
        (await make_inquiry(course_x["id"], student_name="Ravi Kumar", contact_no="9000000001"))["id"]
    )

    response = await client.post(
        "/api/custom-fees/",
        json={
            "student_name": "Asha Patil",
            "contact_no": "9876543210",
            "course_id": course_x["id"],
            "custom_full_fee": "9000",
            "reason": "discount",
        },
        headers=admin_headers,
    )
    assert response.status_code == 201
    assert response.json()["sync"]["matched"] == 1

    totals = {}
    for enrollment in (a_on_x, a_on_y, b_on_x):
        detail = await client.get(f"/api/enrollments/{enrollment['id']}", headers=admin_headers)
        totals[enrollment["id"]] = Decimal(detail.json()["total_fee"])

    assert totals[a_on_x["id"]] == Decimal("9000")
    assert totals[a_on_y["id"]] == Decimal("20000")
    assert totals[b_on_x["id"]] == Decimal("15000")


async def test_enrollment_uses_existing_custom_fee_per_plan(
    client, admin_headers, make_course, make_inquiry, make_enrollment
):
    course = await make_course(full_fee="15000", installment_fee="16000")
    await client.post(
        "/api/custom-fees/",
        json={
            "student_name": "Asha Patil",
            "contact_no": "9876543210",
            "course_id": course["id"],
            "custom_full_fee": "10000",
            "custom_installment_fee": "",
            "reason": "financial_assistance",
        },
        headers=admin_headers,
    )

    inquiry = await make_inquiry(course["id"])
    enrollment = await make_enrollment(inquiry["id"], fee_plan="installments")

    # installment figure was left empty, so the course default applies
    assert Decimal(enrollment["total_fee"]) == Decimal("16000")

    effective = await client.get(
        f"/api/courses/{course['id']}/effective-fees",
        params={"student_name": "Asha Patil", "contact_no": "9876543210"},
        headers=admin_headers,
    )
    body = effective.json()
    assert body["has_custom_fee"] is True
    assert Decimal(body["full_fee"]) == Decimal("10000")
    assert Decimal(body["installment_fee"]) == Decimal("16000")


async def test_deactivating_custom_fee_restores_course_default(
    client, admin_headers, make_course, make_inquiry, make_enrollment
):
    course = await make_course(full_fee="15000")
    enrollment = await make_enrollment((await make_inquiry(course["id"]))["id"])

    created = await client.post(
        "/api/custom-fees/",
        json={
            "student_name": "Asha Patil",
            "contact_no": "9876543210",
            "course_id": course["id"],
            "custom_full_fee": "9000",
            "reason": "scholarship",
        },
        headers=admin_headers,
    )
    custom_fee_id = created.json()["custom_fee"]["id"]

    response = await client.patch(
        f"/api/custom-fees/{custom_fee_id}",
        json={"is_active": False},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    assert response.json()["custom_fee"]["is_active"] is False
    assert response.json()["sync"]["updated"] == 1

    detail = await client.get(f"/api/enrollments/{enrollment['id']}", headers=admin_headers)
    assert Decimal(detail.json()["total_fee"]) == Decimal("15000")


async def test_moving_custom_fee_restores_previous_student(
    client, admin_headers, make_course, make_inquiry, make_enrollment
):
    course = await make_course(full_fee="15000")
    original = await make_enrollment((await make_inquiry(course["id"]))["id"])
    moved_to = await make_enrollment(
        (await make_inquiry(course["id"], student_name="Asha Patil", contact_no="9000000000"))["id"]
    )

    created = await client.post(
        "/api/custom-fees/",
        json={
            "student_name": "Asha Patil",
            "contact_no": "9876543210",
            "course_id": course["id"],
            "custom_full_fee": "9000",
            "reason": "scholarship",
        },
        headers=admin_headers,
    )
    assert created.json()["previous_sync"] is None
    custom_fee_id = created.json()["custom_fee"]["id"]

    response = await client.patch(
        f"/api/custom-fees/{custom_fee_id}",
        json={"contact_no": "9000000000"},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    body = response.json()

    assert body["sync"] == {"matched": 1, "updated": 1, "unchanged": 0, "failed_enrollment_ids": []}
    assert body["previous_sync"] == {
        "matched": 1,
        "updated": 1,
        "unchanged": 0,
        "failed_enrollment_ids": [],
    }

    totals = {}
    for enrollment in (original, moved_to):
        detail = await client.get(f"/api/enrollments/{enrollment['id']}", headers=admin_headers)
        totals[enrollment["id"]] = Decimal(detail.json()["total_fee"])

    assert totals[original["id"]] == Decimal("15000")
    assert totals[moved_to["id"]] == Decimal("9000")


async def test_patch_without_moving_skips_previous_sync(
    client, admin_headers, make_course
):
    course = await make_course(full_fee="15000")
    created = await client.post(
        "/api/custom-fees/",
        json={
            "student_name": "Asha Patil",
            "contact_no": "9876543210",
            "course_id": course["id"],
            "custom_full_fee": "9000",
            "reason": "scholarship",
        },
        headers=admin_headers,
    )

    response = await client.patch(
        f"/api/custom-fees/{created.json()['custom_fee']['id']}",
        json={"custom_full_fee": "8000"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["previous_sync"] is None


async def test_resync_failure_keeps_other_updates(
    client, admin_headers, session_factory, make_course, make_inquiry, make_enrollment
):
    course = await make_course(full_fee="15000")
    broken = await make_enrollment((await make_inquiry(course["id"]))["id"])
    healthy = await make_enrollment((await make_inquiry(course["id"]))["id"])

    async with session_factory() as session:
        await session.execute(
            update(Enrollment).where(Enrollment.id == broken["id"]).values(fee_plan="monthly")
        )
        await session.commit()

    response = await client.post(
        "/api/custom-fees/",
        json={
            "student_name": "Asha Patil",
            "contact_no": "9876543210",
            "course_id": course["id"],
            "custom_full_fee": "9000",
            "reason": "discount",
        },
        headers=admin_headers,
    )
    assert response.status_code == 201, response.text
    assert response.json()["sync"] == {
        "matched": 2,
        "updated": 1,
        "unchanged": 0,
        "failed_enrollment_ids": [broken["id"]],
    }

    detail = await client.get(f"/api/enrollments/{healthy['id']}", headers=admin_headers)
    assert Decimal(detail.json()["total_fee"]) == Decimal("9000")

    async with session_factory() as session:
        total = await session.scalar(
            select(Enrollment.total_fee).where(Enrollment.id == broken["id"])
        )
    assert Decimal(total) == Decimal("15000")


async def test_deleting_custom_fee_keeps_enrollment_total(
    client, admin_headers, make_course, make_inquiry, make_enrollment
):
    course = await make_course(full_fee="15000")
    enrollment = await make_enrollment((await make_inquiry(course["id"]))["id"])

    created = await client.post(
        "/api/custom-fees/",
        json={
            "student_name": "Asha Patil",
            "contact_no": "9876543210",
            "course_id": course["id"],
            "custom_full_fee": "9000",
            "reason": "scholarship",
        },
        headers=admin_headers,
    )
    custom_fee_id = created.json()["custom_fee"]["id"]

    response = await client.delete(f"/api/custom-fees/{custom_fee_id}", headers=admin_headers)
    assert response.status_code == 204

    missing = await client.get(f"/api/custom-fees/{custom_fee_id}", headers=admin_headers)
    assert missing.status_code == 404

    detail = await client.get(f"/api/enrollments/{enrollment['id']}", headers=admin_headers)
    assert Decimal(detail.json()["total_fee"]) == Decimal("9000")


async def test_duplicate_active_custom_fee_is_rejected(client, admin_headers, make_course):
    course = await make_course()
    payload = {
        "student_name": "Asha Patil",
        "contact_no": "9876543210",
        "course_id": course["id"],
        "custom_full_fee": "9000",
        "reason": "scholarship",
    }

    first = await client.post("/api/custom-fees/", json=payload, headers=admin_headers)
    second = await client.post("/api/custom-fees/", json=payload, headers=admin_headers)

    assert first.status_code == 201
    assert second.status_code == 400
    assert second.json()["error"] == "BUSINESS_LOGIC_ERROR"


async def test_check_and_list_custom_fees(client, admin_headers, make_course):
    course = await make_course()
    await client.post(
        "/api/custom-fees/",
        json={
            "student_name": "Asha Patil",
            "contact_no": "98765 43210",
            "course_id": course["id"],
            "custom_installment1": "5000",
            "reason": "discount",
        },
        headers=admin_headers,
    )

    found = await client.get(
        f"/api/custom-fees/check/Asha%20Patil/9876543210/{course['id']}",
        headers=admin_headers,
    )
    assert found.status_code == 200
    assert found.json()["has_custom_fee"] is True
    assert Decimal(found.json()["custom_fee"]["custom_installment1"]) == Decimal("5000")

    not_found = await client.get(
        f"/api/custom-fees/check/asha%20patil/9876543210/{course['id']}",
        headers=admin_headers,
    )
    assert not_found.json() == {"has_custom_fee": False, "custom_fee": None}

    listing = await client.get(
        "/api/custom-fees/", params={"search": "Asha"}, headers=admin_headers
    )
    body = listing.json()
    assert body["total"] == 1
    assert body["pages"] == 1
    assert body["custom_fees"][0]["contact_no"] == "9876543210"


async def test_custom_fee_for_unknown_course_is_404(client, admin_headers):
    response = await client.post(
        "/api/custom-fees/",
        json={
            "student_name": "Asha Patil",
            "contact_no": "9876543210",
            "course_id": 999,
            "reason": "discount",
        },
        headers=admin_headers,
    )
    assert response.status_code == 404
    assert response.json()["error"] == "NOT_FOUND"


async def test_manual_sync_reports_unchanged(
    client, admin_headers, make_course, make_inquiry, make_enrollment
):
    course = await make_course()
    await make_enrollment((await make_inquiry(course["id"]))["id"])

    created = await client.post(
        "/api/custom-fees/",
        json={
            "student_name": "Asha Patil",
            "contact_no": "9876543210",
            "course_id": course["id"],
            "custom_full_fee": "9000",
            "reason": "scholarship",
        },
        headers=admin_headers,
    )
    custom_fee_id = created.json()["custom_fee"]["id"]

    response = await client.post(
        f"/api/custom-fees/{custom_fee_id}/sync-enrollments", headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["sync"] == {
        "matched": 1,
        "updated": 0,
        "unchanged": 1,
        "failed_enrollment_ids": [],
    }
