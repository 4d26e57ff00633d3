"""
Executor Module - Black Box Interface

Purpose: Receive commands from the control backend and route them to executors
Interface: CommandRouter.register(), dispatch(); SSECommandAgent.run(), stop()
Hidden: SSE connection handling, command queueing, report delivery

Command executors (what "encrypt" or "restart" actually does) plug in through
CommandRouter.register().
"""

from .router import CommandRouter, Executor, logging_executor
from .sse_agent import SSECommandAgent, parse_commands

__all__ = ["CommandRouter", "Executor", "SSECommandAgent", "logging_executor", "parse_commands"]
