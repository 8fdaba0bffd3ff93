"""Base class for LangGraph graphs to share common behavior."""

from __future__ import annotations

from abc import ABC, abstractmethod
from langgraph.graph import StateGraph

from nearmatch.config import config
from nearmatch.utils.errors import GraphExecutionError, InvalidInputError
from nearmatch.utils.logging_config import logger


class BaseGraph(ABC):
    """Abstract base class for all LangGraph implementations.

    Centralizes logging, request preference parsing and the compile step so
    graph subclasses focus on node logic.
    """

    def __init__(self, timeout: int = 30):
        self.timeout = timeout
        self.logger = logger

    @abstractmethod
    def build_graph(self) -> StateGraph:
        """Build and return the StateGraph instance."""

    def _log_node_execution(self, node_name: str, state: dict) -> None:
        """Log node execution start with minimal state context."""

        self.logger.debug("Executing node: %s", node_name)

    def _log_node_error(self, node_name: str, error: Exception) -> None:
        """Log node execution error without leaking user data."""

        self.logger.error("Node %s failed: %s", node_name, str(error))

    def _resolve_radius(self, preferences: dict) -> float:
        """Requested radius, defaulted from config and capped at the maximum."""

        raw = preferences.get("radiusKm", config.DEFAULT_RADIUS_KM)
        try:
            radius = float(raw)
        except (TypeError, ValueError) as exc:
            raise InvalidInputError(f"radiusKm must be a number, got {raw!r}") from exc
        if radius < 0:
            raise InvalidInputError("radiusKm cannot be negative")
        return min(radius, config.MAX_RADIUS_KM)

    def _resolve_limit(self, preferences: dict) -> int:
        """Requested result count, defaulted and capped by config."""

        raw = preferences.get("limit", config.MAX_RESULTS)
        try:
            limit = int(raw)
        except (TypeError, ValueError) as exc:
            raise InvalidInputError(f"limit must be an integer, got {raw!r}") from exc
        return max(0, min(limit, config.MAX_RESULTS))

    def compile(self):
        """Build and compile the graph for execution.

        Raises:
            GraphExecutionError: If the graph cannot be built or compiled.
        """

        try:
            graph = self.build_graph()
            return graph.compile()
        except Exception as exc:
            name = type(self).__name__
            self.logger.error("Failed to compile %s: %s", name, exc)
            raise GraphExecutionError(f"Failed to compile {name}: {exc}") from exc
