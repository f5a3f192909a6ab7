from fastapi import APIRouter
from finance_api.routes import accounts, categories, transactions, summary

api_router = APIRouter()


@api_router.get("/health")
def api_health():
    return {"status": "healthy"}


api_router.include_router(accounts.router, prefix="/accounts", tags=["accounts"])
api_router.include_router(categories.router, prefix="/categories", tags=["categories"])
api_router.include_router(transactions.router, prefix="/transactions", tags=["transactions"])
api_router.include_router(summary.router, prefix="/summary", tags=["summary"])
