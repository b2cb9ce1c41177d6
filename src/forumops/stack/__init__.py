"""Compose stack lifecycle for forumops."""

from .compose import CommandResult, ComposeError, ComposeStack, ServiceState, parse_ps_output

__all__ = [
    "CommandResult",
    "ComposeError",
    "ComposeStack",
    "ServiceState",
    "parse_ps_output",
]
