from cardflow.llm.signals import fraud_response, legitimacy_response, score_order, score_payout


CLEAN_PAYOUT = {
    "accountName": "Chinedu Okafor",
    "accountNumber": "3058826471",
    "bvn": "22345678901",
    "nin": "40938271650",
    "state": "Lagos",
    "lga": "Ikeja",
    "ipAddress": "102.89.1.1",
    "location": "Lagos, NG",
}

CLEAN_ORDER = {
    "politicianName": "Ada Obi",
    "politicalParty": "APC",
    "email": "ada@obi.ng",
    "phone": "08031234567",
    "orderItems": [{"denomination": 1000, "quantity": 100}],
}


def test_clean_payout_has_no_signals():
    score, reasons = score_payout(CLEAN_PAYOUT)
    assert score == 0.0
    assert reasons == []
    assert fraud_response(CLEAN_PAYOUT) == {
        "isFraudulent": False,
        "riskScore": 0.0,
        "fraudExplanation": "No risk signals found.",
    }


def test_placeholder_payout_is_flagged():
    data = {**CLEAN_PAYOUT, "accountNumber": "1111111111", "accountName": "test user", "ipAddress": "unavailable"}
    out = fraud_response(data)
    assert out["isFraudulent"] is True
    assert out["riskScore"] >= 60
    assert "repeated digits" in out["fraudExplanation"]
    assert "placeholder account name" in out["fraudExplanation"]


def test_sequential_account_number():
    _, reasons = score_payout({**CLEAN_PAYOUT, "accountNumber": "0123456789"})
    assert "sequential account number" in reasons


def test_location_mismatch():
    _, reasons = score_payout({**CLEAN_PAYOUT, "location": "Kano, NG"})
    assert reasons == ["client location differs from declared state"]


def test_payout_score_is_bounded():
    data = {
        "accountNumber": "0123456789",
        "accountName": "test 123",
        "bvn": "00000000000",
        "ipAddress": "",
        "location": "London",
        "state": "Rivers",
    }
    score, _ = score_payout(data)
    assert 0.0 <= score <= 1.0


def test_clean_order_is_legitimate():
    score, reasons = score_order(CLEAN_ORDER)
    assert score == 1.0
    assert reasons == []
    assert legitimacy_response(CLEAN_ORDER)["isLegitimate"] is True


def test_junk_order_is_not_legitimate():
    out = legitimacy_response({
        "politicianName": "test",
        "politicalParty": "XYZ",
        "email": "a@mailinator.com",
        "phone": "12345",
        "orderItems": "[]",
    })
    assert out["isLegitimate"] is False
    assert out["legitimacyScore"] < 60
    assert "unrecognised political party" in out["analysis"]


def test_order_items_as_json_string():
    data = {**CLEAN_ORDER, "orderItems": '[{"denomination": 1000, "quantity": 600000}]'}
    _, reasons = score_order(data)
    assert reasons == ["order volume unusually large"]
