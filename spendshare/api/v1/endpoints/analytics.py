from fastapi import APIRouter, Depends

from spendshare.core.auth import get_current_user
from spendshare.db.mongo import get_db
from spendshare.models.user import User
from spendshare.schemas.analytics import ExpenseComparison, ExpenseVisualization
from spendshare.services.analytics_service import AnalyticsService

router = APIRouter()


@router.get("/comparison", response_model=ExpenseComparison)
async def get_expense_comparison(current_user: User = Depends(get_current_user), db=Depends(get_db)):
    """This week and month against the previous ones"""
    return ExpenseComparison(**await AnalyticsService(db).expense_comparison(current_user.id))


@router.get("/visualize", response_model=ExpenseVisualization)
async def get_expense_visualization(current_user: User = Depends(get_current_user), db=Depends(get_db)):
    return ExpenseVisualization(**await AnalyticsService(db).visualize(current_user.id))
