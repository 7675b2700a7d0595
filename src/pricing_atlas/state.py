"""Per-service lifecycle tracking for one pipeline run.

Each service advances Downloaded -> Normalized -> Validated -> Output ->
Versioned, one step at a time. Any other transition is a fatal error naming
the service, where it is, and where it was asked to go.
"""

from __future__ import annotations

import threading
from typing import Iterable, Optional

from pricing_atlas.contracts import ServiceState
from pricing_atlas.errors import IncompleteServiceSupport, StateTransitionViolation


class ServiceStateTracker:
    """Thread-safe state machine over all services in a run."""

    def __init__(self) -> None:
        self._states: dict[str, ServiceState] = {}
        self._failures: dict[str, str] = {}
        self._lock = threading.Lock()

    def state_of(self, service: str) -> Optional[ServiceState]:
        with self._lock:
            return self._states.get(service)

    def snapshot(self) -> dict[str, ServiceState]:
        with self._lock:
            return dict(self._states)

    def failures(self) -> dict[str, str]:
        with self._lock:
            return dict(self._failures)

    def _advance(self, service: str, target: ServiceState) -> None:
        with self._lock:
            current = self._states.get(service)
            if target is ServiceState.DOWNLOADED:
                if current is not None:
                    raise StateTransitionViolation(
                        f"service {service} is already registered",
                        service=service,
                        expected="unregistered",
                        actual=current.value,
                        details=[f"attempted: {target.value}"],
                    )
            else:
                expected = _previous(target)
                if current is not expected:
                    raise StateTransitionViolation(
                        f"cannot move {service} to {target.value} from "
                        f"{current.value if current else 'unregistered'}",
                        service=service,
                        expected=expected.value,
                        actual=current.value if current else "unregistered",
                        details=[f"attempted: {target.value}"],
                    )
            self._states[service] = target

    def mark_downloaded(self, service: str) -> None:
        self._advance(service, ServiceState.DOWNLOADED)

    def mark_normalized(self, service: str) -> None:
        self._advance(service, ServiceState.NORMALIZED)

    def mark_validated(self, service: str) -> None:
        self._advance(service, ServiceState.VALIDATED)

    def mark_output(self, service: str) -> None:
        self._advance(service, ServiceState.OUTPUT)

    def mark_versioned(self, service: str) -> None:
        self._advance(service, ServiceState.VERSIONED)

    def mark_failed(self, service: str, error: str) -> None:
        """Record why a service stopped; its state is left where it stalled."""
        with self._lock:
            self._failures[service] = error

    def services_in(self, state: ServiceState) -> list[str]:
        with self._lock:
            return sorted(code for code, current in self._states.items() if current is state)

    def require_all_at_least(self, state: ServiceState, services: Iterable[str]) -> None:
        """Barrier: every listed service must have reached ``state``."""
        lagging = self._lagging(state, services)
        if lagging:
            raise StateTransitionViolation(
                f"{len(lagging)} service(s) have not reached {state.value}",
                expected=state.value,
                actual=lagging,
                details=lagging,
            )

    def require_all_versioned(self, services: Iterable[str]) -> None:
        lagging = self._lagging(ServiceState.VERSIONED, services)
        if lagging:
            raise IncompleteServiceSupport(
                f"{len(lagging)} enabled service(s) did not reach Versioned",
                expected=ServiceState.VERSIONED.value,
                actual=lagging,
                details=lagging,
                hint="The run is not valid until every enabled service is Versioned.",
            )

    def _lagging(self, state: ServiceState, services: Iterable[str]) -> list[str]:
        with self._lock:
            lagging = []
            for service in sorted(set(services)):
                current = self._states.get(service)
                if current is None:
                    lagging.append(f"{service}: never started")
                elif current.order < state.order:
                    note = self._failures.get(service)
                    suffix = f" ({note})" if note else ""
                    lagging.append(f"{service}: stopped at {current.value}{suffix}")
            return lagging


def _previous(state: ServiceState) -> ServiceState:
    ordered = list(ServiceState)
    return ordered[ordered.index(state) - 1]
