from cardflow.api.normalize import normalize_transition_payload


def test_envelope_is_passed_through():
    payload = {
        "record": {"workflow": "login", "submissionId": "s1", "stepIndex": 0, "junk": 1},
        "values": {"email": "a@b.co"},
        "context": {"ipAddress": "1.2.3.4"},
    }
    out = normalize_transition_payload(payload)
    assert out["record"] == {"workflow": "login", "submissionId": "s1", "stepIndex": 0}
    assert out["values"] == {"email": "a@b.co"}
    assert out["context"] == {"ipAddress": "1.2.3.4"}


def test_flat_form_post_becomes_values():
    out = normalize_transition_payload({"cardCode": "OK-1", "consent": "on", "metadata": {"location": "Lagos"}})
    assert out["record"] is None
    assert out["values"] == {"cardCode": "OK-1", "consent": "on"}
    assert out["context"] == {"location": "Lagos"}


def test_top_level_snake_case_record():
    out = normalize_transition_payload({"submission_id": "s1", "workflow": "login", "step": 0, "formData": {"password": "x"}})
    assert out["record"] == {"workflow": "login", "submissionId": "s1", "stepIndex": 0}
    assert out["values"] == {"password": "x"}


def test_non_dict_payload():
    assert normalize_transition_payload(None) == {"record": None, "values": {}, "context": {}}
    assert normalize_transition_payload(["x"]) == {"record": None, "values": {}, "context": {}}
