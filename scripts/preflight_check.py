#!/usr/bin/env python3
import sys
import os

print("Running preflight import check...")
try:
    # Set dummy env vars to avoid KeyErrors during config load if any
    os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")

    import cardflow.main
    print("Import cardflow.main: OK")

    from cardflow.workflows.catalog import list_workflows
    names = [d.name for d in list_workflows()]
    if not names:
        raise RuntimeError("workflow catalogue is empty")
    print(f"Workflow catalogue: {', '.join(names)}")

    import cardflow.queue.jobs
    print("Import cardflow.queue.jobs: OK")

    print("Preflight check passed.")
    sys.exit(0)
except Exception as e:
    print(f"Preflight check FAILED: {e}")
    import traceback
    traceback.print_exc()
    sys.exit(1)
