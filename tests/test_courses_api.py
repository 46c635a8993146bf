from decimal import Decimal


async def test_create_and_list_courses(client, admin_headers, website_headers, make_course):
    await make_course(name="Tally Prime", code="TALLY", fee_plans=["Full: 15000", "2 x 8000"])
    await make_course(name="Advanced Excel", code="EXCEL")

    response = await client.get("/api/courses/", headers=website_headers)
    assert response.status_code == 200

    courses = response.json()
    assert [course["name"] for course in courses] == ["Advanced Excel", "Tally Prime"]
    assert courses[1]["fee_plans"] == ["Full: 15000", "2 x 8000"]
    assert Decimal(courses[1]["installment1"]) == Decimal("8000")


async def test_duplicate_course_code_conflicts(client, admin_headers, make_course):
    await make_course(code="DCA")

    response = await client.post(
        "/api/courses/",
        json={
            "name": "Diploma in Computer Applications",
            "code": "DCA",
            "duration": 6,
            "full_fee": "12000",
            "installment_fee": "13000",
        },
        headers=admin_headers,
    )
    assert response.status_code == 409
    assert response.json()["error"] == "DUPLICATE_ERROR"


async def test_blank_course_code_is_rejected(client, admin_headers):
    response = await client.post(
        "/api/courses/",
        json={"name": "MS-CIT", "code": "   ", "duration": 3, "full_fee": "5000", "installment_fee": "5500"},
        headers=admin_headers,
    )
    assert response.status_code == 400


async def test_referenced_course_is_deactivated(
    client, admin_headers, website_headers, make_course, make_inquiry
):
    course = await make_course()
    await make_inquiry(course["id"])

    response = await client.delete(f"/api/courses/{course['id']}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["deleted"] is False
    assert response.json()["deactivated"] is True

    active = await client.get("/api/courses/", headers=website_headers)
    assert active.json() == []

    everything = await client.get(
        "/api/courses/", params={"include_inactive": True}, headers=admin_headers
    )
    assert everything.json()[0]["is_active"] is False


async def test_unreferenced_course_is_deleted(client, admin_headers, make_course):
    course = await make_course()

    response = await client.delete(f"/api/courses/{course['id']}", headers=admin_headers)
    assert response.json()["deleted"] is True

    missing = await client.get(f"/api/courses/{course['id']}", headers=admin_headers)
    assert missing.status_code == 404


async def test_effective_fees_without_student(client, admin_headers, make_course):
    course = await make_course(installment1=None, installment2=None)

    response = await client.get(f"/api/courses/{course['id']}/effective-fees", headers=admin_headers)
    body = response.json()

    assert body["has_custom_fee"] is False
    assert Decimal(body["full_fee"]) == Decimal("15000")
    assert Decimal(body["installment1"]) == Decimal("0")


async def test_website_role_cannot_change_courses(client, website_headers):
    response = await client.post(
        "/api/courses/",
        json={"name": "MS-CIT", "code": "MSCIT", "duration": 3, "full_fee": "5000", "installment_fee": "5500"},
        headers=website_headers,
    )
    assert response.status_code == 403
