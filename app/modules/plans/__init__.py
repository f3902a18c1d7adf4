# Plans module
from app.modules.plans.models import Plan
from app.modules.plans.services import PlanService
from app.modules.plans.router import router

__all__ = ["Plan", "PlanService", "router"]
