"""Synchronization and recovery primitives for the remote UI."""

from raiffcli.engine.poller import ConditionPoller, WaitCondition, element_present, element_visible, view_bound
from raiffcli.engine.supervisor import RecoveryPolicy, RecoveryRule, RecoverySupervisor

__all__ = [
    "ConditionPoller",
    "RecoveryPolicy",
    "RecoveryRule",
    "RecoverySupervisor",
    "WaitCondition",
    "element_present",
    "element_visible",
    "view_bound",
]
