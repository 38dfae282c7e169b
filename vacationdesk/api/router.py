from fastapi import APIRouter

from vacationdesk.api.accruals import accrual_admin_router, cron_router
from vacationdesk.api.audit_logs import audit_logs_router
from vacationdesk.api.balances import balances_router
from vacationdesk.api.countries import countries_router
from vacationdesk.api.users import users_router
from vacationdesk.api.vacations import vacations_router

api_router = APIRouter()
api_router.include_router(vacations_router)
api_router.include_router(balances_router)
api_router.include_router(users_router)
api_router.include_router(countries_router)
api_router.include_router(cron_router)
api_router.include_router(accrual_admin_router)
api_router.include_router(audit_logs_router)
