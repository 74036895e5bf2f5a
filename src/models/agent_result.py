# src/models/agent_result.py

"""Tagged result returned by the agent invoker."""

from dataclasses import dataclass


@dataclass(frozen=True)
class AgentSuccess:
    """The agent finished and produced a final textual report."""

    message: str
    steps: int = 0


@dataclass(frozen=True)
class AgentFailure:
    """The agent run failed, timed out, or ended without a report."""

    reason: str


AgentOutcome = AgentSuccess | AgentFailure
