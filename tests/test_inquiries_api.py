async def test_website_submits_inquiry(client, website_headers, make_course):
    course = await make_course()

    response = await client.post(
        "/api/inquiries/",
        json={
            "student_name": "  Asha Patil ",
            "course_id": course["id"],
            "contact_no": "98765-43210",
            "father_contact_no": "9123456780",
            "address": "12 MG Road, Pune",
            "batch_id": "batch3",
        },
        headers=website_headers,
    )
    assert response.status_code == 201, response.text

    body = response.json()
    assert body["student_name"] == "Asha Patil"
    assert body["contact_no"] == "9876543210"
    assert body["status"] == "pending"
    assert body["course"]["id"] == course["id"]


async def test_inquiry_validation_errors(client, website_headers, make_course):
    course = await make_course()
    payload = {
        "student_name": "Asha Patil",
        "course_id": course["id"],
        "contact_no": "12345",
        "father_contact_no": "9123456780",
        "address": "12 MG Road, Pune",
        "batch_id": "batch1",
    }

    bad_contact = await client.post("/api/inquiries/", json=payload, headers=website_headers)
    assert bad_contact.status_code == 400
    assert bad_contact.json()["error"] == "VALIDATION_ERROR"

    payload.update(contact_no="9876543210", batch_id="batch9")
    bad_batch = await client.post("/api/inquiries/", json=payload, headers=website_headers)
    assert bad_batch.status_code == 400

    payload.update(batch_id="batch1", course_id=999)
    unknown_course = await client.post("/api/inquiries/", json=payload, headers=website_headers)
    assert unknown_course.status_code == 404


async def test_batches_are_public_to_the_site(client, website_headers):
    response = await client.get("/api/inquiries/batches", headers=website_headers)

    assert response.status_code == 200
    batches = response.json()
    assert len(batches) == 7
    assert batches[0] == {"id": "batch1", "name": "Batch 1", "time": "7:30 AM - 9:00 AM"}


async def test_listing_requires_admin(client, website_headers):
    response = await client.get("/api/inquiries/", headers=website_headers)
    assert response.status_code == 403


async def test_list_filters_and_pagination(client, admin_headers, make_course, make_inquiry):
    tally = await make_course()
    excel = await make_course()
    await make_inquiry(tally["id"], student_name="Asha Patil")
    await make_inquiry(tally["id"], student_name="Ravi Kumar", contact_no="9000000001", batch_id="batch5")
    await make_inquiry(excel["id"], student_name="Meena Shah", contact_no="9000000002")

    by_course = await client.get(
        "/api/inquiries/", params={"course_id": tally["id"], "size": 1}, headers=admin_headers
    )
    body = by_course.json()
    assert body["total"] == 2
    assert body["pages"] == 2
    assert len(body["inquiries"]) == 1
    assert body["filters"] == {"course_id": tally["id"]}

    by_search = await client.get("/api/inquiries/", params={"search": "meena"}, headers=admin_headers)
    assert [i["student_name"] for i in by_search.json()["inquiries"]] == ["Meena Shah"]

    by_batch = await client.get("/api/inquiries/", params={"batch_id": "batch5"}, headers=admin_headers)
    assert by_batch.json()["total"] == 1


async def test_status_transitions_are_free(client, admin_headers, make_course, make_inquiry):
    course = await make_course()
    inquiry = await make_inquiry(course["id"])

    for status in ("certificate_issued", "pending", "cancelled"):
        response = await client.patch(
            f"/api/inquiries/{inquiry['id']}/status",
            json={"status": status},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["status"] == status

    filtered = await client.get("/api/inquiries/", params={"status": "cancelled"}, headers=admin_headers)
    assert filtered.json()["total"] == 1


async def test_update_inquiry(client, admin_headers, make_course, make_inquiry):
    course = await make_course()
    inquiry = await make_inquiry(course["id"])

    response = await client.patch(
        f"/api/inquiries/{inquiry['id']}",
        json={"address": "7 FC Road, Pune", "batch_id": "batch4"},
        headers=admin_headers,
    )
    body = response.json()
    assert body["address"] == "7 FC Road, Pune"
    assert body["batch_id"] == "batch4"
    assert body["student_name"] == "Asha Patil"


async def test_bulk_status_update_and_delete(client, admin_headers, make_course, make_inquiry):
    course = await make_course()
    first = await make_inquiry(course["id"])
    second = await make_inquiry(course["id"], student_name="Ravi Kumar", contact_no="9000000001")

    missing_status = await client.post(
        "/api/inquiries/bulk",
        json={"ids": [first["id"]], "action": "update_status"},
        headers=admin_headers,
    )
    assert missing_status.status_code == 400

    updated = await client.post(
        "/api/inquiries/bulk",
        json={"ids": [first["id"], second["id"], 77], "action": "update_status", "status": "confirmed"},
        headers=admin_headers,
    )
    assert updated.json() == {
        "action": "update_status",
        "requested": 3,
        "affected": 2,
        "missing_ids": [77],
    }

    deleted = await client.post(
        "/api/inquiries/bulk",
        json={"ids": [first["id"], second["id"]], "action": "delete"},
        headers=admin_headers,
    )
    assert deleted.json()["affected"] == 2

    remaining = await client.get("/api/inquiries/", headers=admin_headers)
    assert remaining.json()["total"] == 0
