# Application Scheduling Package
from .modified_sm2 import ModifiedSm2Scheduler
from .sm2 import Sm2Scheduler

__all__ = ["Sm2Scheduler", "ModifiedSm2Scheduler"]
