RECORD_KEYS = ("workflow", "submissionId", "values", "stepIndex", "status", "errors", "createdAtMs")

# snake_case / legacy spellings sent by some form clients
RECORD_ALIASES = {
    "submission_id": "submissionId",
    "step_index": "stepIndex",
    "step": "stepIndex",
    "created_at_ms": "createdAtMs",
}

VALUE_KEYS = ("values", "fields", "formData")
CONTEXT_KEYS = ("context", "metadata")

RESERVED = set(RECORD_KEYS) | set(RECORD_ALIASES) | set(VALUE_KEYS) | set(CONTEXT_KEYS) | {"record"}


def _canonical_record(raw: dict) -> dict:
    out = {}
    for k, v in raw.items():
        out[RECORD_ALIASES.get(k, k)] = v
    return {k: out[k] for k in RECORD_KEYS if k in out}


def normalize_transition_payload(payload) -> dict:
    """
    Accepts the shapes a form client may send and converts them into the
    canonical structure expected by TransitionRequest:

    {
      "record": {...} | None,
      "values": {...},
      "context": {...}
    }

    Supported variants:
    - {"record": {...}, "values": {...}, "context": {...}}
    - record keys at top level ({"submissionId": ..., "stepIndex": ...})
    - a flat field map (plain form post), treated as values with no record
    """
    if payload is None or not isinstance(payload, dict):
        payload = {}

    record = payload.get("record")
    if isinstance(record, dict):
        record = _canonical_record(record)
    elif "submissionId" in payload or "submission_id" in payload:
        record = _canonical_record(payload)
    else:
        record = None

    values = None
    for k in VALUE_KEYS:
        if isinstance(payload.get(k), dict):
            values = dict(payload[k])
            break
    if values is None:
        # Flat form post: everything that is not an envelope key is a field value
        values = {k: v for k, v in payload.items() if k not in RESERVED}

    context = {}
    for k in CONTEXT_KEYS:
        if isinstance(payload.get(k), dict):
            context = dict(payload[k])
            break

    return {"record": record, "values": values, "context": context}
