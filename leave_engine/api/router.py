from fastapi import APIRouter

from leave_engine.api.assignments import assignments_router
from leave_engine.api.audit import audit_router
from leave_engine.api.balances import balances_router
from leave_engine.api.holidays import holidays_router
from leave_engine.api.leaves import leaves_router
from leave_engine.api.rollover import rollover_router
from leave_engine.api.rules import rules_router

api_router = APIRouter()
api_router.include_router(rules_router)
api_router.include_router(assignments_router)
api_router.include_router(leaves_router)
api_router.include_router(balances_router)
api_router.include_router(holidays_router)
api_router.include_router(rollover_router)
api_router.include_router(audit_router)
