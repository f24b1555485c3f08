from ctledger.conditions.registry import ConditionRegistry

__all__ = ["ConditionRegistry"]
