"""
Tests for the preprocessing orchestrator: snapshot assembly, alias merging,
run policies and source loading.
"""
import pytest

from restaurant_unifier.config.settings import PATH_VARIABLES, PlatformFailurePolicy, ResolutionPolicy, RunPolicy, Settings
from restaurant_unifier.errors import ConfigurationError, SourceParseError, UnresolvedRecordError
from restaurant_unifier.models.entities import SourcePlatform
from restaurant_unifier.models.sources import SourceData
from restaurant_unifier.parsers.base import AliasBatch
from restaurant_unifier.preprocessing.orchestrator import (
    load_sources, merge_alias_batches, preprocess_data, run_preprocess,
)
from tests.fixtures.builders import sample_documents, square_line_item, square_order, write_inputs


def settings_for(paths, policy=RunPolicy()):
    return Settings(policy=policy, **{PATH_VARIABLES[var]: path for var, path in paths.items()})


def with_unresolved_square_item():
    documents = sample_documents()
    documents["square"]["orders"]["orders"].append(
        square_order("sq-3", [square_line_item("var-retired", 850, name="Garden Salad")])
    )
    return SourceData.model_validate(documents)


class TestPreprocessData:

    def test_sample_snapshot_counts(self, sample_sources, location_configs, matching):
        snapshot = preprocess_data(sample_sources, location_configs, matching)

        assert snapshot.version == "1.0.0"
        assert snapshot.normalized.entity_counts() == {
            "locations": 2, "categories": 3, "products": 3, "product_variations": 5,
            "product_aliases": 7, "orders": 4, "order_items": 5, "payments": 3,
        }
        assert set(snapshot.report.platform_stats) == {"toast", "doordash", "square"}
        assert snapshot.report.failed_platforms == {}

    def test_references_are_consistent(self, sample_sources, location_configs, matching):
        normalized = preprocess_data(sample_sources, location_configs, matching).normalized

        location_ids = {loc.id for loc in normalized.locations}
        product_ids = {p.id for p in normalized.products}
        variation_ids = {v.id for v in normalized.product_variations}
        order_ids = {o.id for o in normalized.orders}

        assert all(o.location_id in location_ids for o in normalized.orders)
        assert all(i.order_id in order_ids for i in normalized.order_items)
        assert all(i.product_id in product_ids for i in normalized.order_items)
        assert all(i.variation_id in variation_ids for i in normalized.order_items if i.variation_id)
        assert all(p.order_id in order_ids for p in normalized.payments)
        assert all(a.product_id in product_ids for a in normalized.product_aliases)
        assert {i.order_id for i in normalized.order_items} == order_ids

    def test_aliases_are_unique_per_name_and_source(self, sample_sources, location_configs, matching):
        aliases = preprocess_data(sample_sources, location_configs, matching).normalized.product_aliases

        keys = [(a.raw_name.lower(), a.source) for a in aliases]
        assert len(keys) == len(set(keys))
        assert ("buffalo wngs", SourcePlatform.DOORDASH) in keys
        assert ("buffalo wings - 12 pcs", SourcePlatform.SQUARE) in keys

    def test_summary_lines_report_drops(self, sample_sources, location_configs, matching):
        report = preprocess_data(sample_sources, location_configs, matching).report
        lines = "\n".join(report.summary_lines())

        assert "toast     2/4 orders kept" in lines
        assert "unknown location orders=1" in lines
        assert report.totals.orders == 4
        assert report.totals.refunded_payments == 2

    def test_keep_policy_keeps_unresolved_item(self, location_configs, matching):
        policy = RunPolicy(unresolved=ResolutionPolicy.KEEP)
        snapshot = preprocess_data(with_unresolved_square_item(), location_configs, matching, policy)

        salad = next(i for i in snapshot.normalized.order_items if i.original_name == "Garden Salad")
        assert salad.product_id is None
        assert snapshot.report.platform_stats["square"].unresolved_kept_items == 1
        assert len(snapshot.normalized.orders) == 5

    def test_drop_policy_reports_unresolved_name(self, location_configs, matching):
        snapshot = preprocess_data(with_unresolved_square_item(), location_configs, matching)

        assert len(snapshot.normalized.orders) == 4
        square = snapshot.report.platform_stats["square"]
        assert square.unresolved_names == ["Garden Salad"]
        assert square.itemless_orders == 1

    def test_abort_policy_raises(self, location_configs, matching):
        policy = RunPolicy(unresolved=ResolutionPolicy.ABORT)
        with pytest.raises(UnresolvedRecordError) as excinfo:
            preprocess_data(with_unresolved_square_item(), location_configs, matching, policy)
        assert excinfo.value.platform == "square"

    def test_continue_policy_drops_failed_platform(self, location_configs, matching):
        policy = RunPolicy(unresolved=ResolutionPolicy.ABORT, platform_failure=PlatformFailurePolicy.CONTINUE)
        snapshot = preprocess_data(with_unresolved_square_item(), location_configs, matching, policy)

        assert "square" in snapshot.report.failed_platforms
        assert "Garden Salad" in snapshot.report.failed_platforms["square"]
        assert {o.source for o in snapshot.normalized.orders} == {SourcePlatform.TOAST, SourcePlatform.DOORDASH}
        assert "FAILED" in "\n".join(snapshot.report.summary_lines())

    def test_missing_platforms_are_skipped(self, location_configs, matching):
        sources = SourceData.model_validate({"toast": sample_documents()["toast"]})
        snapshot = preprocess_data(sources, location_configs, matching)

        assert set(snapshot.report.platform_stats) == {"toast"}
        assert len(snapshot.normalized.orders) == 2


def test_merge_alias_batches_first_batch_wins():
    first, second = AliasBatch(), AliasBatch()
    first.add("p1", "Hamburger", SourcePlatform.SQUARE)
    second.add("p2", "hamburger", SourcePlatform.SQUARE)
    second.add("p2", "hamburger", SourcePlatform.TOAST)

    merged = list(merge_alias_batches([first, second]))
    assert [(a.product_id, a.source) for a in merged] == [("p1", SourcePlatform.SQUARE), ("p2", SourcePlatform.TOAST)]


class TestLoading:

    def test_load_sources(self, tmp_path):
        sources, failures = load_sources(settings_for(write_inputs(tmp_path)))

        assert failures == {}
        assert len(sources.toast.orders) == 4
        assert len(sources.square.catalog.objects) == 4
        assert len(sources.square.payments.payments) == 2

    def test_unreadable_platform_aborts_by_default(self, tmp_path):
        paths = write_inputs(tmp_path)
        with open(paths["TOAST_POS_PATH"], 'w') as f:
            f.write("{not json")

        with pytest.raises(SourceParseError) as excinfo:
            load_sources(settings_for(paths))
        assert excinfo.value.platform == "toast"

    def test_unreadable_platform_is_skipped_under_continue(self, tmp_path):
        paths = write_inputs(tmp_path)
        with open(paths["TOAST_POS_PATH"], 'w') as f:
            f.write("{not json")
        policy = RunPolicy(platform_failure=PlatformFailurePolicy.CONTINUE)

        sources, failures = load_sources(settings_for(paths, policy))
        assert sources.toast is None
        assert sources.doordash is not None
        assert set(failures) == {"toast"}

    def test_wrong_shape_is_a_parse_error(self, tmp_path):
        paths = write_inputs(tmp_path)
        with open(paths["DOORDASH_ORDERS_PATH"], 'w') as f:
            f.write('{"orders": [{"store_id": "dd-store-1"}]}')

        with pytest.raises(SourceParseError, match="Unexpected shape"):
            load_sources(settings_for(paths))

    def test_run_preprocess_reports_load_failures(self, tmp_path):
        paths = write_inputs(tmp_path)
        with open(paths["SQUARE_ORDERS_PATH"], 'w') as f:
            f.write("[")
        policy = RunPolicy(platform_failure=PlatformFailurePolicy.CONTINUE)

        outcome = run_preprocess(settings_for(paths, policy))
        assert outcome.sources.square is None
        assert set(outcome.snapshot.report.failed_platforms) == {"square"}
        assert len(outcome.snapshot.normalized.orders) == 3

    def test_bad_configuration_fails_before_sources_are_read(self, tmp_path):
        paths = write_inputs(tmp_path, locations={"locations": [{"name": "Nowhere"}]})
        with open(paths["TOAST_POS_PATH"], 'w') as f:
            f.write("{not json")

        with pytest.raises(ConfigurationError):
            run_preprocess(settings_for(paths))
