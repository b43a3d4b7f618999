# Run states for a submission workflow

# Interaction Surface: Active wizard step (stepIndex in [0, N))
# Transitions: advance / back / submit
STEP = "STEP"

# Interaction Surface: Terminal success (absorbing)
# Outcome: success message + optional redirect
SUCCEEDED = "SUCCEEDED"

# Interaction Surface: Terminal failure (absorbing)
# Outcome: single first-error message
FAILED = "FAILED"

TERMINAL = (SUCCEEDED, FAILED)

# Outcome statuses surfaced to the form client
OUTCOME_SUCCESS = "success"
OUTCOME_ERROR = "error"
