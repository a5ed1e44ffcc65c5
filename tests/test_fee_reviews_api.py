from decimal import Decimal
from typing import Dict
from uuid import uuid4

import pytest
from httpx import AsyncClient


def preview_body(**overrides) -> dict:
    body = {
        "fee_structure": {
            "admission_fee": 50000,
            "total_program_fee": 500000,
            "number_of_semesters": 4,
            "instalments_per_semester": 3,
            "one_shot_discount_percentage": 10,
        },
        "scholarships": [
            {"id": "temp-1", "name": "Excellence", "start_percentage": 80, "end_percentage": 100, "amount_percentage": 20}
        ],
        "plan": "instalment_wise",
        "cohort_start_date": "2025-01-31",
    }
    body.update(overrides)
    return body


async def _setup_cohort(client: AsyncClient, headers: Dict[str, str], cohort_id: str, fee_payload) -> str:
    await client.put(
        f"/api/v1/fee-structures/cohort/{cohort_id}",
        json=fee_payload(instalment_wise_dates={"semester-1-instalment-0": "2025-02-05"}),
        headers=headers,
    )
    saved = await client.put(
        f"/api/v1/scholarships/cohort/{cohort_id}",
        json={
            "scholarships": [
                {"id": "temp-1", "name": "Merit", "start_percentage": 0, "end_percentage": 79.99, "amount_percentage": 10},
                {"id": "temp-2", "name": "Excellence", "start_percentage": 80, "end_percentage": 100, "amount_percentage": 20},
            ]
        },
        headers=headers,
    )
    return saved.json()[1]["id"]


@pytest.mark.asyncio
async def test_preview_instalment_plan(client: AsyncClient, auth_headers: Dict[str, str]) -> None:
    response = await client.post("/api/v1/fee-reviews/preview", json=preview_body(), headers=auth_headers)
    assert response.status_code == 200
    review = response.json()
    assert review["paymentPlan"] == "instalment_wise"
    assert review["isFallback"] is False
    assert len(review["semesters"]) == 4
    line = review["semesters"][0]["instalments"][0]
    assert Decimal(line["baseAmount"]) == Decimal("37500")
    assert Decimal(line["gstAmount"]) == Decimal("6750")
    assert line["paymentDate"] == "2025-01-31"
    assert Decimal(review["overallSummary"]["totalAmountPayable"]) == Decimal("581000")


@pytest.mark.asyncio
async def test_preview_one_shot_with_score(client: AsyncClient, auth_headers: Dict[str, str]) -> None:
    response = await client.post(
        "/api/v1/fee-reviews/preview",
        json=preview_body(plan="one_shot", test_score=85),
        headers=auth_headers,
    )
    review = response.json()
    assert review["scholarshipId"] == "temp-1"
    assert Decimal(review["oneShotPayment"]["amountPayable"]) == Decimal("422900")


@pytest.mark.asyncio
async def test_preview_falls_back_instead_of_failing(client: AsyncClient, auth_headers: Dict[str, str]) -> None:
    response = await client.post(
        "/api/v1/fee-reviews/preview", json=preview_body(plan="not_selected"), headers=auth_headers
    )
    assert response.status_code == 200
    review = response.json()
    assert review["isFallback"] is True
    assert review["semesters"] == []
    assert Decimal(review["overallSummary"]["totalAmountPayable"]) == Decimal("500000")


@pytest.mark.asyncio
async def test_cohort_review_uses_stored_data(
    client: AsyncClient, auth_headers: Dict[str, str], cohort_id: str, fee_payload
) -> None:
    url = f"/api/v1/fee-reviews/cohort/{cohort_id}"
    assert (await client.get(url, headers=auth_headers)).status_code == 404

    excellence_id = await _setup_cohort(client, auth_headers, cohort_id, fee_payload)

    one_shot = (await client.get(url, headers=auth_headers)).json()
    assert one_shot["paymentPlan"] == "one_shot"
    assert one_shot["oneShotPayment"]["paymentDate"] == "2025-01-31"

    review = (
        await client.get(url, params={"plan": "instalment_wise", "test_score": 90}, headers=auth_headers)
    ).json()
    assert review["scholarshipId"] == excellence_id
    assert review["semesters"][0]["instalments"][0]["paymentDate"] == "2025-02-05"
    assert Decimal(review["overallSummary"]["totalScholarship"]) == Decimal("100000")


@pytest.mark.asyncio
async def test_cohort_review_for_student(
    client: AsyncClient, auth_headers: Dict[str, str], cohort_id: str, fee_payload
) -> None:
    excellence_id = await _setup_cohort(client, auth_headers, cohort_id, fee_payload)
    student_id = str(uuid4())
    await client.put(
        f"/api/v1/fee-structures/cohort/{cohort_id}/students/{student_id}",
        json=fee_payload(total_program_fee=400000, selected_payment_plan="sem_wise"),
        headers=auth_headers,
    )
    await client.put(
        f"/api/v1/scholarships/cohort/{cohort_id}/students/{student_id}",
        json={"scholarship_id": excellence_id, "additional_discount_percentage": 5},
        headers=auth_headers,
    )

    review = (
        await client.get(
            f"/api/v1/fee-reviews/cohort/{cohort_id}", params={"student_id": student_id}, headers=auth_headers
        )
    ).json()
    assert review["paymentPlan"] == "sem_wise"
    assert review["scholarshipId"] == excellence_id
    summary = review["overallSummary"]
    assert Decimal(summary["totalProgramFee"]) == Decimal("400000")
    assert Decimal(summary["totalScholarship"]) == Decimal("100000")  # (20% + 5%) of 400000


@pytest.mark.asyncio
async def test_default_dates(
    client: AsyncClient, auth_headers: Dict[str, str], cohort_id: str, fee_payload
) -> None:
    await _setup_cohort(client, auth_headers, cohort_id, fee_payload)
    response = await client.get(
        f"/api/v1/fee-reviews/cohort/{cohort_id}/default-dates",
        params={"plan": "instalment_wise"},
        headers=auth_headers,
    )
    dates = response.json()["dates"]
    assert len(dates) == 12
    assert dates["semester-1-instalment-0"] == "2025-02-05"
    assert dates["semester-1-instalment-1"] == "2025-02-28"
    assert dates["semester-4-instalment-2"] == "2026-09-30"


@pytest.mark.asyncio
async def test_review_matrix(
    client: AsyncClient, auth_headers: Dict[str, str], cohort_id: str, fee_payload
) -> None:
    await _setup_cohort(client, auth_headers, cohort_id, fee_payload)
    response = await client.get(f"/api/v1/fee-reviews/cohort/{cohort_id}/all", headers=auth_headers)
    assert response.status_code == 200
    reviews = response.json()["reviews"]
    assert len(reviews) == 9
    assert {r["paymentPlan"] for r in reviews} == {"one_shot", "sem_wise", "instalment_wise"}
