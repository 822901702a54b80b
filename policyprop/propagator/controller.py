"""Reconciles root policies and removes stray policies from cluster namespaces."""

from __future__ import annotations

import logging
import time
from datetime import timedelta
from typing import Any, Callable, Optional

from policyprop.client import EventRecorder, NotFoundError
from policyprop.metrics import ROOT_POLICY_DURATION, Histogram
from policyprop.models import ManagedCluster, Policy, Request, Result, is_in_cluster_namespace

CONTROLLER_NAME = "policy-propagator"
REQUEUE_ERROR_DELAY = 5

_log = logging.getLogger(CONTROLLER_NAME)

PolicyHandler = Callable[[Policy], None]


class PolicyReconciler:
    """Reconciles Policy objects.

    Root policies are passed to ``handle_root_policy``; policies that are gone
    are passed to ``clean_up_policy`` so their replicas can be removed.
    """

    def __init__(
        self,
        client: Any,
        handle_root_policy: PolicyHandler,
        clean_up_policy: PolicyHandler,
        recorder: Optional[EventRecorder] = None,
        requeue_error_delay: int = REQUEUE_ERROR_DELAY,
        duration: Histogram = ROOT_POLICY_DURATION,
    ) -> None:
        self.client = client
        self.handle_root_policy = handle_root_policy
        self.clean_up_policy = clean_up_policy
        self.recorder = recorder if recorder is not None else EventRecorder()
        self.requeue_error_delay = requeue_error_delay
        self.duration = duration

    def _handle_root(self, policy: Policy) -> None:
        start = time.perf_counter()
        try:
            self.handle_root_policy(policy)
        finally:
            self.duration.observe(time.perf_counter() - start)

    def reconcile(self, request: Request) -> Result:
        """Handle a root policy, clean up a deleted one, or delete a stray replica."""
        _log.info("Reconciling the policy %s", request.namespaced_name)

        try:
            policy = self.client.get(Policy, request.name, request.namespace)
        except NotFoundError:
            _log.info(
                "Policy not found, so it may have been deleted. Deleting the replicated policies."
            )
            self.clean_up_policy(Policy(request.name, request.namespace))
            return Result()

        clusters = self.client.list(ManagedCluster)

        if not is_in_cluster_namespace(request.namespace, clusters):
            try:
                self._handle_root(policy)
            except Exception:
                _log.exception("Failed to handle root policy %s", policy.namespaced_name)
                self.recorder.event(
                    policy,
                    "Warning",
                    f"policy: {policy.namespace}/{policy.name}",
                    f"Retrying the request in {self.requeue_error_delay} minutes",
                )
                return Result(requeue_after=timedelta(minutes=self.requeue_error_delay))
            return Result()

        _log.info(
            "The policy was found in the cluster namespace but doesn't belong to any root "
            "policy, deleting it: %s",
            policy.namespaced_name,
        )
        try:
            self.client.delete(policy)
        except NotFoundError:
            pass
        return Result()