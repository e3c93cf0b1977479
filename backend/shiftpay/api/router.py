from fastapi import APIRouter

from shiftpay.api.intervals import intervals_router
from shiftpay.api.payments import payments_router
from shiftpay.api.workers import workers_router

api_router = APIRouter()
api_router.include_router(intervals_router)
api_router.include_router(payments_router)
api_router.include_router(workers_router)
