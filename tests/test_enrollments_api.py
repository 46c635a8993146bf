from datetime import date, timedelta
from decimal import Decimal


async def test_enrollment_freezes_fee_and_marks_inquiry_enrolled(
    client, admin_headers, make_course, make_inquiry, make_enrollment
):
    course = await make_course(full_fee="15000", duration=6)
    inquiry = await make_inquiry(course["id"])

    enrollment = await make_enrollment(inquiry["id"], start_date="2026-01-15", fee_plan="full")

    assert Decimal(enrollment["total_fee"]) == Decimal("15000")
    assert enrollment["end_date"] == "2026-07-15"
    assert enrollment["student_name"] == "Asha Patil"
    assert enrollment["batch_id"] == "batch2"
    assert enrollment["payment_status"] == "pending"
    assert Decimal(enrollment["balance"]) == Decimal("15000")
    assert enrollment["course"]["code"] == course["code"]

    detail = await client.get(f"/api/inquiries/{inquiry['id']}", headers=admin_headers)
    assert detail.json()["status"] == "enrolled"


async def test_course_fee_change_does_not_touch_existing_enrollment(
    client, admin_headers, make_course, make_inquiry, make_enrollment
):
    course = await make_course(full_fee="15000")
    enrollment = await make_enrollment((await make_inquiry(course["id"]))["id"])

    response = await client.patch(
        f"/api/courses/{course['id']}", json={"full_fee": "18000"}, headers=admin_headers
    )
    assert response.status_code == 200

    detail = await client.get(f"/api/enrollments/{enrollment['id']}", headers=admin_headers)
    assert Decimal(detail.json()["total_fee"]) == Decimal("15000")


async def test_second_enrollment_for_inquiry_is_rejected(
    client, admin_headers, make_course, make_inquiry, make_enrollment
):
    course = await make_course()
    inquiry = await make_inquiry(course["id"])
    await make_enrollment(inquiry["id"])

    response = await client.post(
        "/api/enrollments/",
        json={
            "inquiry_id": inquiry["id"],
            "father_name": "Ramesh Patil",
            "father_contact_no": "9123456780",
            "student_education": "HSC",
            "student_email": "asha@example.com",
            "student_address": "12 MG Road, Pune",
            "start_date": date.today().isoformat(),
            "fee_plan": "full",
        },
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Inquiry already has an enrollment"


async def test_invalid_email_is_a_validation_error(
    client, admin_headers, make_course, make_inquiry
):
    course = await make_course()
    inquiry = await make_inquiry(course["id"])

    response = await client.post(
        "/api/enrollments/",
        json={
            "inquiry_id": inquiry["id"],
            "father_name": "Ramesh Patil",
            "father_contact_no": "9123456780",
            "student_education": "HSC",
            "student_email": "not-an-email",
            "student_address": "12 MG Road, Pune",
            "start_date": date.today().isoformat(),
            "fee_plan": "full",
        },
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"


async def test_plan_change_refreezes_total_and_manual_total_wins(
    client, admin_headers, make_course, make_inquiry, make_enrollment
):
    course = await make_course(full_fee="15000", installment_fee="16000")
    enrollment = await make_enrollment((await make_inquiry(course["id"]))["id"])

    switched = await client.patch(
        f"/api/enrollments/{enrollment['id']}",
        json={"fee_plan": "installments"},
        headers=admin_headers,
    )
    assert switched.status_code == 200, switched.text
    assert Decimal(switched.json()["total_fee"]) == Decimal("16000")

    manual = await client.patch(
        f"/api/enrollments/{enrollment['id']}",
        json={"fee_plan": "full", "total_fee": "12000"},
        headers=admin_headers,
    )
    assert manual.json()["fee_plan"] == "full"
    assert Decimal(manual.json()["total_fee"]) == Decimal("12000")


async def test_start_date_change_recomputes_end_date(
    client, admin_headers, make_course, make_inquiry, make_enrollment
):
    course = await make_course(duration=1)
    enrollment = await make_enrollment(
        (await make_inquiry(course["id"]))["id"], start_date="2026-01-10"
    )
    assert enrollment["end_date"] == "2026-02-10"

    response = await client.patch(
        f"/api/enrollments/{enrollment['id']}",
        json={"start_date": "2026-01-31"},
        headers=admin_headers,
    )
    assert response.json()["end_date"] == "2026-02-28"


async def test_payments_drive_status_and_history(
    client, admin_headers, make_course, make_inquiry, make_enrollment, make_payment
):
    course = await make_course(full_fee="10000")
    enrollment = await make_enrollment((await make_inquiry(course["id"]))["id"])

    await make_payment(enrollment["id"], "4000", payment_date="2026-01-05")
    partial = await client.get(f"/api/enrollments/{enrollment['id']}", headers=admin_headers)
    assert partial.json()["payment_status"] == "partial"
    assert Decimal(partial.json()["balance"]) == Decimal("6000")

    await make_payment(
        enrollment["id"], "8000", payment_date="2026-02-05", payment_mode="upi", transaction_id="UPI123"
    )
    paid = await client.get(f"/api/enrollments/{enrollment['id']}", headers=admin_headers)
    assert paid.json()["payment_status"] == "paid"
    assert Decimal(paid.json()["balance"]) == Decimal("-2000")

    history = await client.get(f"/api/enrollments/{enrollment['id']}/payments", headers=admin_headers)
    assert [p["payment_date"] for p in history.json()] == ["2026-02-05", "2026-01-05"]


async def test_payment_validation(client, admin_headers, make_course, make_inquiry, make_enrollment):
    course = await make_course()
    enrollment = await make_enrollment((await make_inquiry(course["id"]))["id"])

    negative = await client.post(
        "/api/payments/",
        json={"enrollment_id": enrollment["id"], "amount": "-5", "payment_mode": "cash"},
        headers=admin_headers,
    )
    assert negative.status_code == 422

    orphan = await client.post(
        "/api/payments/",
        json={"enrollment_id": 999, "amount": "100", "payment_mode": "cash"},
        headers=admin_headers,
    )
    assert orphan.status_code == 404


async def test_list_filters_by_payment_status(
    client, admin_headers, make_course, make_inquiry, make_enrollment, make_payment
):
    course = await make_course(full_fee="10000")
    unpaid = await make_enrollment((await make_inquiry(course["id"]))["id"])
    paying = await make_enrollment(
        (await make_inquiry(course["id"], student_name="Ravi Kumar", contact_no="9000000001"))["id"]
    )
    await make_payment(paying["id"], "2500")

    response = await client.get(
        "/api/enrollments/", params={"payment_status": "partial"}, headers=admin_headers
    )
    body = response.json()

    assert body["total"] == 1
    assert body["enrollments"][0]["id"] == paying["id"]
    assert body["filters"]["payment_status"] == "partial"

    everything = await client.get("/api/enrollments/", headers=admin_headers)
    assert {e["id"] for e in everything.json()["enrollments"]} == {unpaid["id"], paying["id"]}


async def test_listing_never_reports_overdue(
    client, admin_headers, make_course, make_inquiry, make_enrollment
):
    course = await make_course()
    start = (date.today() - timedelta(days=60)).isoformat()
    enrollment = await make_enrollment((await make_inquiry(course["id"]))["id"], start_date=start)

    detail = await client.get(f"/api/enrollments/{enrollment['id']}", headers=admin_headers)
    assert detail.json()["payment_status"] == "pending"

    overview = await client.get("/api/fees/overview", headers=admin_headers)
    assert overview.json()["items"][0]["status"] == "overdue"


async def test_deleting_inquiry_cascades_to_enrollment_and_payments(
    client, admin_headers, make_course, make_inquiry, make_enrollment, make_payment
):
    course = await make_course()
    inquiry = await make_inquiry(course["id"])
    enrollment = await make_enrollment(inquiry["id"])
    await make_payment(enrollment["id"], "1000")
    await make_payment(enrollment["id"], "2000")

    response = await client.delete(f"/api/inquiries/{inquiry['id']}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["deleted"] == {"inquiries": 1, "enrollments": 1, "payments": 2}

    gone = await client.get(f"/api/enrollments/{enrollment['id']}", headers=admin_headers)
    assert gone.status_code == 404

    payments = await client.get("/api/payments/", headers=admin_headers)
    assert payments.json()["total"] == 0


async def test_bulk_delete_enrollments_reports_missing(
    client, admin_headers, make_course, make_inquiry, make_enrollment, make_payment
):
    course = await make_course()
    enrollment = await make_enrollment((await make_inquiry(course["id"]))["id"])
    await make_payment(enrollment["id"], "500")

    response = await client.post(
        "/api/enrollments/bulk",
        json={"ids": [enrollment["id"], 404], "action": "delete"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json() == {
        "action": "delete",
        "requested": 2,
        "affected": 1,
        "missing_ids": [404],
    }
