from fastapi import APIRouter

from spendshare.api.v1.endpoints import analytics, auth, expenses, friendships, groups, owes, splits, users

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(friendships.router, prefix="/friendships", tags=["friendships"])
api_router.include_router(groups.router, prefix="/groups", tags=["groups"])
api_router.include_router(splits.router, tags=["splits"])
api_router.include_router(owes.router, prefix="/owes", tags=["owes"])
api_router.include_router(expenses.router, prefix="/expenses", tags=["expenses"])
api_router.include_router(analytics.router, prefix="/analytics", tags=["analytics"])
