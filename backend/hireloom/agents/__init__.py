# Agent modules - Core contracts
from .base import (
    BaseAgent,
    AgentResponse,
    AgentResult,
    AgentStatus,
    WorkflowState,
)

# Workflow agents
from .question_generator import QuestionGeneratorAgent, generate_questions
from .assignment_author import AssignmentAuthorAgent, create_custom_assignment
from .test_assembler import TestAssemblerAgent, TestConfig, assemble_test
from .test_delivery import TestDeliveryAgent, build_test_link, send_test
from .scorer import ScorerAgent, score_test
from .orchestrator import AssessmentOrchestrator

__all__ = [
    # Core contracts
    "BaseAgent",
    "AgentResponse",
    "AgentResult",
    "AgentStatus",
    "WorkflowState",
    # Agents
    "QuestionGeneratorAgent",
    "AssignmentAuthorAgent",
    "TestAssemblerAgent",
    "TestDeliveryAgent",
    "ScorerAgent",
    "AssessmentOrchestrator",
    # Pure operations
    "generate_questions",
    "create_custom_assignment",
    "assemble_test",
    "TestConfig",
    "build_test_link",
    "send_test",
    "score_test",
]
