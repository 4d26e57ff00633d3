"""
Command router.

Resolves each command to its targets and hands them to the executor
registered for the command kind.
"""

import logging
from typing import Callable, Dict, List

from kubeguard.modules.api import Command, CommandReport, DispatchStatus
from kubeguard.modules.k8s import AccessorError
from kubeguard.modules.resolver import CommandResolver, NamespaceExcludedError, ResolutionResult, get_command_id

logger = logging.getLogger("kubeguard.executor.router")

# executor(command, resolved targets)
Executor = Callable[[Command, ResolutionResult], None]


def logging_executor(command: Command, result: ResolutionResult) -> None:
    """Executor that only records the resolved targets."""
    logger.info(
        f"{command.command_name}: {len(result.identifiers)} targets "
        f"({', '.join(result.identifiers[:5])}{'...' if len(result.identifiers) > 5 else ''})"
    )


class CommandRouter:
    """Routes resolved commands to per-kind executors."""

    def __init__(self, resolver: CommandResolver):
        self.resolver = resolver
        self._executors: Dict[str, Executor] = {}

    def register(self, command_name, executor: Executor) -> "CommandRouter":
        """Register the executor of a command kind. Returns self for chaining."""
        key = getattr(command_name, "value", command_name)
        self._executors[key] = executor
        return self

    def registered_commands(self) -> List[str]:
        return sorted(self._executors)

    def dispatch(self, command: Command) -> CommandReport:
        """
        Resolve and execute one command.

        Every command yields a report; failures are reported, never dropped.
        """
        report = CommandReport(
            command_name=command.command_name,
            response_id=command.response_id,
            target_id=get_command_id(command),
            status=DispatchStatus.SUCCESS,
        )

        executor = self._executors.get(command.command_name)
        if executor is None:
            logger.warning(f"No executor registered for command '{command.command_name}'")
            report.status = DispatchStatus.UNHANDLED
            report.errors = [f"unsupported command: {command.command_name}"]
            return report

        try:
            result = self.resolver.resolve_command(command)
        except NamespaceExcludedError as e:
            logger.warning(str(e))
            report.status = DispatchStatus.REJECTED
            report.errors = [str(e)]
            return report
        except AccessorError as e:
            logger.error(f"Failed to resolve targets of {command.command_name}: {e}")
            report.status = DispatchStatus.FAILURE
            report.errors = [str(e)]
            return report
        except Exception as e:
            logger.exception(f"Unexpected error resolving targets of {command.command_name}: {e}")
            report.status = DispatchStatus.FAILURE
            report.errors = [str(e)]
            return report

        report.targets = result.identifiers
        report.instance_ids = result.instance_ids
        report.errors = list(result.errors)

        try:
            executor(command, result)
        except Exception as e:
            logger.error(f"Executor for {command.command_name} failed: {e}")
            report.status = DispatchStatus.FAILURE
            report.errors.append(str(e))
            return report

        if result.errors:
            report.status = DispatchStatus.PARTIAL
        return report
