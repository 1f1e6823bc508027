"""
Base Agent Contracts for the assessment workflow.

This module defines the abstractions every workflow step follows: question
generation, assignment authoring, test assembly, delivery and scoring.

Design Principles:
    1. Single Responsibility: Each agent does exactly one thing
    2. Strong Typing: Inputs/outputs are dataclasses, not raw dicts
    3. Immutability: WorkflowState is immutable; updates return new instances
    4. No raising: run() converts failures into a FAILURE response

Usage:
    >>> class MyAgent(BaseAgent[MyInput, MyOutput]):
    ...     name = "my_agent"
    ...     description = "Does something specific"
    ...
    ...     def _process(self, input_data: MyInput) -> tuple[MyOutput, float, str]:
    ...         ...
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar
from uuid import uuid4

from ..core.errors import HireloomError
from ..schemas.messages import WorkflowStage


logger = logging.getLogger(__name__)


# =============================================================================
# TYPE VARIABLES
# =============================================================================

InputT = TypeVar("InputT")   # Agent input type
OutputT = TypeVar("OutputT") # Agent output type


# =============================================================================
# ENUMS
# =============================================================================

class AgentStatus(str, Enum):
    """
    Outcome status of an agent's execution.

    Using str, Enum for JSON serialization compatibility.
    """
    SUCCESS = "success"
    FAILURE = "failure"


# =============================================================================
# CORE DATA CONTRACTS
# =============================================================================

@dataclass(frozen=True)
class AgentResponse(Generic[OutputT]):
    """
    Standardized response returned by every agent.

    Attributes:
        agent_name: Identifier of the agent that produced this response
        status: Execution outcome (success/failure)
        output: The actual result data, strongly typed per agent
        confidence_score: Agent's confidence in the output [0.0, 1.0]
            - 1.0 = deterministic result (templates, scoring)
            - lower = model-generated content that deserves a review
        explanation: Human-readable summary of what happened
        metadata: Optional diagnostics (error text, reasoning trace)
    """
    agent_name: str
    status: AgentStatus
    output: Optional[OutputT] = None
    confidence_score: float = 0.0
    explanation: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence_score <= 1.0:
            raise ValueError(
                f"confidence_score must be in [0.0, 1.0], got {self.confidence_score}"
            )

    def is_successful(self) -> bool:
        return self.status == AgentStatus.SUCCESS

    @property
    def error(self) -> Optional[str]:
        return self.metadata.get("error")


@dataclass(frozen=True)
class WorkflowState:
    """
    Immutable state that flows through the recruiter's assessment workflow.

    Each agent receives the current state and returns a NEW instance with
    its output or error recorded.

    Attributes:
        job_id: The job posting the test is being built for
        workflow_id: Unique identifier for this workflow
        created_at: When the workflow started
        current_stage: Where the dialog currently is
        agent_outputs: Latest output from each agent (keyed by agent_name)
        errors: Errors encountered so far (non-fatal)
        metadata: Additional context
    """
    job_id: str
    workflow_id: str = field(default_factory=lambda: uuid4().hex)
    created_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    current_stage: WorkflowStage = WorkflowStage.SETUP
    agent_outputs: Dict[str, Any] = field(default_factory=dict)
    errors: Tuple[str, ...] = field(default_factory=tuple)
    metadata: Dict[str, Any] = field(default_factory=dict)

    # -------------------------------------------------------------------------
    # Immutable Update Methods
    # -------------------------------------------------------------------------

    def with_agent_output(
        self,
        agent_name: str,
        output: Any,
        stage: Optional[WorkflowStage] = None,
    ) -> "WorkflowState":
        """Return a new state with an agent's output recorded."""
        new_outputs = {**self.agent_outputs, agent_name: output}
        return replace(
            self,
            agent_outputs=new_outputs,
            current_stage=stage if stage else self.current_stage,
        )

    def with_error(self, error: str) -> "WorkflowState":
        """Return a new state with an error recorded."""
        return replace(self, errors=self.errors + (error,))

    def get_agent_output(self, agent_name: str) -> Optional[Any]:
        return self.agent_outputs.get(agent_name)


@dataclass(frozen=True)
class AgentResult(Generic[OutputT]):
    """
    Combined result of an agent execution: response + updated state.
    """
    response: AgentResponse[OutputT]
    state: WorkflowState


# =============================================================================
# BASE AGENT ABSTRACT CLASS
# =============================================================================

class BaseAgent(ABC, Generic[InputT, OutputT]):
    """
    Abstract base class for all workflow agents.

    Subclasses implement ``_process``, which may raise. ``run`` wraps it,
    converting domain errors (and anything unexpected) into a FAILURE
    response so that no failure escapes to the initiating action.

    Class Attributes:
        name: Unique identifier for this agent type (must be overridden)
        description: Human-readable description of agent's responsibility
        failure_message: Prefix for the explanation of a failed run
    """

    name: str = "base_agent"
    description: str = "Base agent - must be overridden"
    failure_message: str = "Agent failed"

    def __init__(self, agent_id: Optional[str] = None):
        self.agent_id = agent_id or uuid4().hex[:12]
        self._reasoning_log: List[str] = []

    def log_reasoning(self, message: str) -> None:
        """Add a step to the reasoning trace for auditability."""
        self._reasoning_log.append(message)
        logger.debug("[%s] %s", self.name, message)

    @property
    def reasoning_log(self) -> List[str]:
        return list(self._reasoning_log)

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    @abstractmethod
    def _process(self, input_data: InputT) -> Tuple[OutputT, float, str]:
        """
        Perform the agent's core logic.

        Returns:
            (output, confidence_score, explanation)

        Raises:
            HireloomError: On invalid input or collaborator failure
        """

    def run(
        self,
        input_data: InputT,
        state: Optional[WorkflowState] = None,
        stage: Optional[WorkflowStage] = None,
    ) -> AgentResult[OutputT]:
        """
        Execute the agent and return its response with the updated state.

        Args:
            input_data: Strongly-typed input specific to this agent
            state: Current workflow state; a blank one is used if omitted
            stage: Stage to move to on success

        Returns:
            AgentResult with SUCCESS and the output, or FAILURE and the error
        """
        if state is None:
            state = WorkflowState(job_id="")

        self._reasoning_log = []
        try:
            output, confidence, explanation = self._process(input_data)
        except HireloomError as e:
            logger.warning("%s: %s", self.name, e)
            return self._failure(state, error=str(e), explanation=f"{self.failure_message}: {e}")
        except Exception as e:
            logger.exception("%s crashed", self.name)
            return self._failure(
                state,
                error=str(e),
                explanation=f"{self.failure_message}: unexpected error",
            )

        return self._success(output, state, confidence, explanation, stage=stage)

    # -------------------------------------------------------------------------
    # Helper Methods
    # -------------------------------------------------------------------------

    def _success(
        self,
        output: OutputT,
        state: WorkflowState,
        confidence: float,
        explanation: str,
        stage: Optional[WorkflowStage] = None,
    ) -> AgentResult[OutputT]:
        response = AgentResponse(
            agent_name=self.name,
            status=AgentStatus.SUCCESS,
            output=output,
            confidence_score=confidence,
            explanation=explanation,
            metadata={"reasoning": self.reasoning_log},
        )

        # Serialize output for state storage
        if hasattr(output, "to_dict"):
            stored = output.to_dict()  # type: ignore
        elif isinstance(output, (list, tuple)):
            stored = [o.to_dict() if hasattr(o, "to_dict") else o for o in output]
        else:
            stored = output
        new_state = state.with_agent_output(self.name, stored, stage=stage)

        return AgentResult(response=response, state=new_state)

    def _failure(
        self,
        state: WorkflowState,
        error: str,
        explanation: str,
    ) -> AgentResult[OutputT]:
        response: AgentResponse[OutputT] = AgentResponse(
            agent_name=self.name,
            status=AgentStatus.FAILURE,
            output=None,
            confidence_score=0.0,
            explanation=explanation,
            metadata={"error": error, "reasoning": self.reasoning_log},
        )
        new_state = state.with_error(f"[{self.name}] {error}")

        return AgentResult(response=response, state=new_state)
