from .base import Step, StepContext, StepResult, StepStatus, step

__all__ = ["Step", "StepContext", "StepResult", "StepStatus", "step"]
