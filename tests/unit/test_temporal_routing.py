"""Tests for Temporal routing and task queue assignment."""

import pytest

from src.sitegen.temporal.routing import (
    QueueKind,
    _stable_shard,
    route_for_system_job,
    route_for_tenant,
    task_queue_name,
)

pytestmark = pytest.mark.unit

TENANT_ID = "550e8400-e29b-41d4-a716-446655440000"


class TestStableShard:
    """Shard function must be deterministic across processes."""

    def test_same_input_same_shard(self):
        assert _stable_shard(TENANT_ID, 32) == _stable_shard(TENANT_ID, 32)

    def test_different_inputs_distribute(self):
        shards = {_stable_shard(f"tenant-{i}", 32) for i in range(100)}
        # Should hit at least 20 of 32 shards with 100 tenants
        assert len(shards) >= 20

    def test_single_shard_is_zero(self):
        assert _stable_shard("any-tenant", 1) == 0

    def test_zero_shards_treated_as_one(self):
        assert _stable_shard("any-tenant", 0) == 0

    def test_bounds(self):
        for i in range(100):
            assert 0 <= _stable_shard(f"tenant-{i}", 64) < 64


class TestTaskQueueName:
    def test_generation_queue(self):
        assert task_queue_name("sitegen", QueueKind.GENERATION, 5) == "sitegen.generation.05"

    def test_jobs_queue(self):
        assert task_queue_name("sitegen", QueueKind.JOBS, 0) == "sitegen.jobs.00"

    def test_double_digit_shard_not_over_padded(self):
        assert task_queue_name("sitegen", QueueKind.GENERATION, 15) == "sitegen.generation.15"


class TestRouteForTenant:
    def test_generation_route_carries_fairness_key(self):
        route = route_for_tenant(
            tenant_id=TENANT_ID,
            namespace="default",
            prefix="sitegen",
            shards=8,
        )
        assert route.namespace == "default"
        assert route.task_queue.startswith("sitegen.generation.")
        assert route.priority is not None
        assert route.priority.fairness_key == TENANT_ID
        assert route.priority.fairness_weight == 1

    def test_fairness_weight_propagates(self):
        route = route_for_tenant(
            tenant_id=TENANT_ID,
            namespace="default",
            prefix="sitegen",
            shards=1,
            fairness_weight=10,
        )
        assert route.priority.fairness_weight == 10

    def test_same_tenant_same_queue(self):
        routes = {
            route_for_tenant(
                tenant_id=TENANT_ID, namespace="default", prefix="sitegen", shards=32
            ).task_queue
            for _ in range(5)
        }
        assert len(routes) == 1

    def test_tenants_share_queues_when_sharded(self):
        queues = {
            route_for_tenant(
                tenant_id=f"tenant-{i}", namespace="default", prefix="sitegen", shards=2
            ).task_queue
            for i in range(100)
        }
        assert queues == {"sitegen.generation.00", "sitegen.generation.01"}

    def test_route_is_frozen(self):
        route = route_for_tenant(tenant_id="t", namespace="default", prefix="sitegen", shards=1)
        with pytest.raises(AttributeError):
            route.namespace = "changed"  # type: ignore


class TestRouteForSystemJob:
    def test_jobs_queue_shard_zero_without_priority(self):
        route = route_for_system_job(namespace="default", prefix="sitegen")
        assert route.task_queue == "sitegen.jobs.00"
        assert route.priority is None
