# policyprop

Reconcilers for governance policies, placement bindings and policy sets. They
work over an in-memory object store.

The package has three reconcilers:

- **Policy propagation**: `policyprop.propagator.controller.PolicyReconciler`.
  - A policy outside a cluster namespace is a root policy. It is passed to a
    `handle_root_policy` callable that you supply. The time the call takes is
    recorded in the `ocm_handle_root_policy_duration_seconds` histogram.
  - If that call raises, the reconciler records a `Warning` event. It then
    returns a `Result` whose `requeue_after` is `requeue_error_delay` minutes
    (5 by default).
  - A policy that no longer exists is passed, as a bare `Policy` with its name
    and namespace, to a `clean_up_policy` callable that you supply.
  - A policy found in a cluster namespace is deleted from the store.
- **Policy set status**: `policyprop.policyset.controller.PolicySetReconciler`.
  - It rebuilds a `PolicySet`'s `status` from its member policies and writes
    the status back with `update_status` when it has changed.
  - The status holds the placements, the aggregated compliance, and a message
    that names the disabled, pending and deleted policies.
  - It records a `Warning` event with reason `PolicyNotFound` for each member
    policy it cannot read, and a `Normal` event when reconciling finishes.
- **Compliance metrics**: `policyprop.policymetrics.MetricReconciler`.
  - It keeps one series per policy in the `policy_governance_info` gauge. The
    value is `0` for compliant and `1` for non-compliant. A series with no
    compliance reported yet is created at `0`.
  - Root policies are labelled with type `root` and cluster namespace `<null>`.
  - Policies in a cluster namespace are named `<root namespace>.<root name>`
    and are labelled with type `propagated`.
  - The series is removed when the policy is gone or disabled.

## Installing

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Models and store

`policyprop.models` holds the object types:

- `Policy`
- `PolicySet` and its `PolicySetStatus`
- `PlacementBinding` with its `Subject` references
- `PlacementRule` and `PlacementDecision`, each with a `clusters` list
- `ManagedCluster`, whose name is also its namespace

It also holds `Request`, `Result`, `NamespacedName` and the `ComplianceState`
enum. The helpers are:

- `is_in_cluster_namespace`
- `is_pb_for_policy`
- `is_pb_for_policy_set`

`policyprop.client.ObjectStore` stores objects by kind, namespace and name and
always hands out copies. Its methods are `add`, `get`, `list` (filtered by
namespace and labels), `delete` and `update_status`. `get`, `delete` and
`update_status` raise `NotFoundError` for an object that is not there.
`EventRecorder` collects events as tuples in its `events` list.

```python
from policyprop.client import EventRecorder, ObjectStore
from policyprop.models import PlacementBinding, PlacementRule, Policy, PolicySet, Request, Subject
from policyprop.policyset.controller import PolicySetReconciler

store = ObjectStore([
    Policy("my-policy", "policies"),
    PolicySet("my-set", "policies", policies=["my-policy"]),
    PlacementRule("my-rule", "policies", clusters=["cluster1"]),
    PlacementBinding(
        "my-binding",
        "policies",
        placement_ref=Subject("apps.open-cluster-management.io", "PlacementRule", "my-rule"),
        subjects=[Subject("policy.open-cluster-management.io", "PolicySet", "my-set")],
    ),
])

recorder = EventRecorder()
PolicySetReconciler(store, recorder).reconcile(Request("my-set", "policies"))
print(store.get(PolicySet, "my-set", "policies").status.status_message)
```

## Mappers and predicates

Each controller package has `mappers` and `predicates` modules.

A mapper factory takes the store. It returns a function that turns a changed
object into the list of `Request`s it causes.

- `policyprop.propagator.mappers` gives requests for root policies. A
  placement binding, placement rule or placement decision reaches policies
  directly or through policy sets.
- `policyprop.policyset.mappers` gives requests for the policy sets involved.

A predicate is a `PredicateFuncs` with `create`, `update` and `delete`
methods. It tells which changes matter:

- `PLACEMENT_BINDING_PREDICATE` in both packages.
- `POLICY_SET_PREDICATE` in both packages.
- `POLICY_PREDICATE` in `policyprop.policyset.predicates`.

The functions behind them can also be called on their own:

- `binding_is_relevant`
- `policy_status_changed`
- `policy_set_policies_changed`

The metrics themselves are `GaugeVec` and `Histogram` in `policyprop.metrics`.

## What it does not do

- The package does not talk to a cluster API server.
- It does not run watch loops or a work queue. You call the mappers,
  predicates and `reconcile` methods yourself.
- It does not serve the metrics over HTTP.
- It has no command-line program.
- It does not copy root policies into cluster namespaces itself. That work,
  and the clean-up of replicas, belongs to the callables given to
  `PolicyReconciler`.