from __future__ import annotations

import pytest

from pricing_atlas.contracts import ServiceState
from pricing_atlas.errors import IncompleteServiceSupport, StateTransitionViolation
from pricing_atlas.state import ServiceStateTracker


def test_full_forward_lifecycle() -> None:
    tracker = ServiceStateTracker()
    tracker.mark_downloaded("AmazonEC2")
    tracker.mark_normalized("AmazonEC2")
    tracker.mark_validated("AmazonEC2")
    tracker.mark_output("AmazonEC2")
    tracker.mark_versioned("AmazonEC2")
    assert tracker.state_of("AmazonEC2") is ServiceState.VERSIONED
    tracker.require_all_versioned(["AmazonEC2"])


def test_skipping_a_state_names_service_actual_and_target() -> None:
    tracker = ServiceStateTracker()
    tracker.mark_downloaded("AmazonS3")
    with pytest.raises(StateTransitionViolation) as exc_info:
        tracker.mark_validated("AmazonS3")
    error = exc_info.value
    assert error.service == "AmazonS3"
    assert error.actual == "Downloaded"
    assert "Validated" in str(error)
    assert "AmazonS3" in error.diagnostic()
    assert tracker.state_of("AmazonS3") is ServiceState.DOWNLOADED


def test_states_are_never_revisited() -> None:
    tracker = ServiceStateTracker()
    tracker.mark_downloaded("AWSLambda")
    tracker.mark_normalized("AWSLambda")
    with pytest.raises(StateTransitionViolation):
        tracker.mark_normalized("AWSLambda")
    with pytest.raises(StateTransitionViolation):
        tracker.mark_downloaded("AWSLambda")


def test_unregistered_service_cannot_advance() -> None:
    tracker = ServiceStateTracker()
    with pytest.raises(StateTransitionViolation) as exc_info:
        tracker.mark_normalized("AmazonRDS")
    assert exc_info.value.actual == "unregistered"


def test_barrier_and_versioned_check_report_stalled_services() -> None:
    tracker = ServiceStateTracker()
    tracker.mark_downloaded("AmazonEC2")
    tracker.mark_downloaded("AmazonVPC")
    tracker.mark_normalized("AmazonEC2")
    tracker.mark_validated("AmazonEC2")
    tracker.mark_failed("AmazonVPC", "no processor registered")

    assert tracker.services_in(ServiceState.VALIDATED) == ["AmazonEC2"]
    with pytest.raises(StateTransitionViolation):
        tracker.require_all_at_least(ServiceState.VALIDATED, ["AmazonEC2", "AmazonVPC"])
    tracker.require_all_at_least(ServiceState.VALIDATED, ["AmazonEC2"])

    with pytest.raises(IncompleteServiceSupport) as exc_info:
        tracker.require_all_versioned(["AmazonEC2", "AmazonVPC", "AmazonS3"])
    details = exc_info.value.details
    assert "AmazonEC2: stopped at Validated" in details
    assert "AmazonS3: never started" in details
    assert "AmazonVPC: stopped at Downloaded (no processor registered)" in details
