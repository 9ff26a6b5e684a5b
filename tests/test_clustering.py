"""Cluster formation and constraint tests."""

import json

from features.clustering import ClusterConfig, cluster_signals
from features.clustering.engine import apply_constraints, fallback_result
from features.clustering.models import Cluster
from features.clustering.prompts import build_clustering_prompt
from features.clustering.similarity import pre_filter_signals
from tests.helpers import MockProvider
from utils.llm import OperationContext


def _clusters_response(*clusters):
    return json.dumps({"clusters": [
        {"name": name, "description": f"{name} work", "signal_ids": ids} for name, ids in clusters
    ]})


def _assert_partition(result, n):
    claimed = [ref for c in result.clusters for ref in c.signal_ids]
    all_ids = {f"sig-{i}" for i in range(n)}
    assert set(claimed) <= all_ids
    assert set(claimed) | set(result.unclustered) == all_ids
    assert not set(claimed) & set(result.unclustered)


def test_empty_input_does_not_call_provider():
    provider = MockProvider(_clusters_response(("x", ["sig-0"])))
    result = cluster_signals([], provider)
    assert result.clusters == []
    assert result.unclustered == []
    assert provider.calls == []


def test_provider_error_falls_back_to_singletons(signals, failing_provider):
    result = cluster_signals(signals, failing_provider)
    assert len(result.clusters) == len(signals)
    assert result.unclustered == []
    for i, (cluster, sig) in enumerate(zip(result.clusters, signals)):
        assert cluster.signal_ids == [f"sig-{i}"]
        assert cluster.name == sig.title
        assert cluster.confidence == sig.confidence
        assert cluster.tags == sig.tags


def test_cancelled_context_falls_back_without_calling_provider(signals):
    provider = MockProvider(_clusters_response(("Auth", ["sig-0", "sig-1"])))
    ctx = OperationContext()
    ctx.cancel()
    result = cluster_signals(signals, provider, ctx=ctx)
    assert provider.calls == []
    assert len(result.clusters) == len(signals)


def test_unparseable_response_falls_back(signals):
    result = cluster_signals(signals, MockProvider("Sure! Here are some clusters."))
    assert [c.signal_ids for c in result.clusters] == [["sig-0"], ["sig-1"], ["sig-2"], ["sig-3"]]


def test_llm_clusters_are_validated(signals):
    provider = MockProvider(_clusters_response(
        ("Auth", ["sig-0", "sig-1", "sig-99", "sig-0"]),
        ("Ghost", ["sig-42"]),
        ("Database", ["sig-2"]),
    ))
    result = cluster_signals(signals, provider)

    assert [c.id for c in result.clusters] == ["cluster-0", "cluster-2"]
    auth = result.clusters[0]
    assert auth.signal_ids == ["sig-0", "sig-1"]
    assert auth.confidence == 0.9
    assert auth.tags == ["auth", "security"]
    assert result.unclustered == ["sig-3"]
    _assert_partition(result, len(signals))


def test_request_shape(signals):
    provider = MockProvider(_clusters_response(("All", ["sig-0", "sig-1", "sig-2", "sig-3"])))
    cluster_signals(signals, provider)
    assert len(provider.calls) == 1
    req = provider.calls[0]
    assert req.max_tokens == 4096
    assert "valid JSON" in req.system_prompt
    for i in range(len(signals)):
        assert f"ID: sig-{i}" in req.prompt


def test_prompt_truncates_long_descriptions(make_signal):
    sig = make_signal("Long one", description="d" * 300)
    prompt = build_clustering_prompt(pre_filter_signals([sig], 0.7))
    assert "d" * 200 + "..." in prompt
    assert "d" * 201 not in prompt


def test_min_cluster_size_discards_small_clusters(signals):
    provider = MockProvider(_clusters_response(("Auth", ["sig-0", "sig-1"]), ("Db", ["sig-2"])))
    result = cluster_signals(signals, provider, ClusterConfig(min_cluster_size=2))
    assert [c.name for c in result.clusters] == ["Auth"]
    assert result.unclustered == ["sig-2", "sig-3"]
    _assert_partition(result, len(signals))


def test_max_cluster_size_truncates(signals):
    provider = MockProvider(_clusters_response(("Everything", ["sig-3", "sig-1", "sig-0", "sig-2"])))
    result = cluster_signals(signals, provider, ClusterConfig(max_cluster_size=2))
    assert result.clusters[0].signal_ids == ["sig-3", "sig-1"]
    assert result.unclustered == ["sig-0", "sig-2"]
    _assert_partition(result, len(signals))


def test_config_defaults_for_non_positive_values():
    cfg = ClusterConfig(similarity_threshold=0, min_cluster_size=-1, max_cluster_size=0).with_defaults()
    assert cfg == ClusterConfig(similarity_threshold=0.7, min_cluster_size=1, max_cluster_size=20)


def test_apply_constraints_directly(signals):
    clusters = [Cluster(id="cluster-0", name="one", signal_ids=["sig-1"])]
    result = apply_constraints(clusters, signals, ClusterConfig())
    assert result.unclustered == ["sig-0", "sig-2", "sig-3"]


def test_fallback_result_round_trips_through_dict(signals):
    result = fallback_result(signals)
    restored = type(result).from_dict(result.to_dict())
    assert restored == result


def test_null_description_keeps_llm_clusters(signals):
    provider = MockProvider(
        '{"clusters": [{"name": "Auth", "description": null, "signal_ids": ["sig-0", "sig-1"]}]}'
    )
    result = cluster_signals(signals[:2], provider)
    assert len(result.clusters) == 1
    assert result.clusters[0].name == "Auth"
    assert result.clusters[0].description == ""
