"""
Scheduler Domain

Proxies typed domain operations (jobs, tasks, appointments) to the Dime.Scheduler
API. Most writes go through the stored-procedure batch endpoint (``/import``);
appointment category updates and appointment queries use the REST endpoints.

Structure:
- schemas.py    wire envelope, request models and call outcomes
- procedures.py pure builders mapping requests onto procedure envelopes
- client.py     httpx transport adapter and failure classification
- workflow.py   query-filter-update bulk workflows
- router.py     FastAPI endpoints under /dime and /dimescheduler
"""
