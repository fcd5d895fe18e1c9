"""Tests for the benchmark runner."""

from unittest.mock import MagicMock

import pytest

from core.config import ConfigurationError
from core.design import DesignType
from core.keys import EntityType
from core.runner import BenchmarkRunner
from utils.data_generator import DataGenerator


SCENARIOS = {
    'Get User By ID',
    'Get User Posts',
    'Get User Orders',
    'Get All Posts',
    'Get User Screen Data',
    'Get Comments On User Posts',
    'Get Orders By Date Range',
    'Get Users By Status',
    'Get Users By Email',
    'Get User Order Items',
    'Get Order Items By Supplier',
}


def test_full_run(config, relational, single_table, generator):
    config = config.with_overrides(test_user_count=2, iterations=2)
    runner = BenchmarkRunner(config, [relational, single_table], generator=generator)

    run = runner.run()

    assert len(run.measurements) == len(SCENARIOS) * 2 * 2 * 2
    assert run.failed == []
    assert {m.test_name for m in run.measurements} == SCENARIOS
    assert {m.design for m in run.measurements} == {DesignType.RELATIONAL, DesignType.SINGLE_TABLE}
    assert run.finished_at is not None
    assert run.dataset_counts['ORDER'] == config.order_count

    assert len(run.insert_summaries) == 8
    assert all(s.inserted == s.requested for s in run.insert_summaries)


def test_both_designs_return_the_same_user(config, relational, single_table, generator):
    runner = BenchmarkRunner(config, [relational, single_table], generator=generator)
    run = runner.run()

    users = {m.design: m.items for m in run.measurements if m.test_name == 'Get User By ID'}
    assert users[DesignType.RELATIONAL] == users[DesignType.SINGLE_TABLE]
    assert users[DesignType.RELATIONAL][0].userId == 'user-00001'


def test_report_only_skips_insertion(config, relational, single_table, generator):
    runner = BenchmarkRunner(config, [relational, single_table], generator=generator)

    run = runner.run(report_only=True)

    assert run.report_only
    assert run.insert_summaries == []
    assert run.dataset_counts == {}
    # Tables are empty, but every read still succeeds
    assert run.failed == []
    assert all(m.item_count == 0 for m in run.measurements)


def test_skip_data_insertion(config, relational, single_table, generator):
    runner = BenchmarkRunner(config, [relational, single_table], generator=generator)

    run = runner.run(skip_data_insertion=True)

    assert run.insert_summaries == []
    assert run.dataset_counts['USER'] == config.user_count


def test_missing_credentials_abort_before_measuring(config):
    session = MagicMock()
    session.get_credentials.return_value = None
    design = MagicMock()
    runner = BenchmarkRunner(config, [design], session=session)

    with pytest.raises(ConfigurationError):
        runner.run()

    design.insert_dataset.assert_not_called()
    design.get_user.assert_not_called()


def test_invalid_config_aborts_before_measuring(config):
    design = MagicMock()
    runner = BenchmarkRunner(config.with_overrides(batch_size=50), [design])

    with pytest.raises(ConfigurationError, match='batch_size'):
        runner.run()

    design.get_user.assert_not_called()


def test_test_users_capped_by_user_count(config):
    runner = BenchmarkRunner(config.with_overrides(test_user_count=10), [])

    assert runner.test_user_ids() == ['user-00001', 'user-00002', 'user-00003']


def test_clear_all_data(config, relational, single_table, loaded):
    runner = BenchmarkRunner(config, [relational, single_table])

    deleted = runner.clear_all_data()

    assert deleted == loaded.total * 2
    assert relational.get_all_of_type(loaded.users[0].entity_type).items == []


def test_run_to_dict(config, relational, single_table, generator):
    run = BenchmarkRunner(config, [relational, single_table], generator=generator).run()

    data = run.to_dict()

    assert data['summary']['totalTests'] == len(run.measurements)
    assert data['summary']['failedTests'] == 0
    assert len(data['results']) == len(run.measurements)
    assert data['insertSummaries'][0]['requested'] > 0


def test_second_run_does_not_duplicate_data(config, relational, single_table, generator):
    BenchmarkRunner(config, [relational, single_table], generator=generator).run()

    # A later run generates fresh timestamps, so new sort keys would not overwrite old items
    later = DataGenerator(seed=config.seed, reference_time=generator.reference_time.replace(year=2025))
    run = BenchmarkRunner(config, [relational, single_table], generator=later).run()

    assert run.insert_summaries == []
    assert run.dataset_counts == {}
    assert run.existing_data == ['Relational', 'SingleTable']
    assert run.to_dict()['existingData'] == ['Relational', 'SingleTable']
    assert len(relational.get_all_of_type(EntityType.POST).items) == config.post_count
    assert len(single_table.get_all_of_type(EntityType.POST).items) == config.post_count
    assert len(single_table.get_all_of_type(EntityType.ORDER).items) == config.order_count


def test_only_empty_designs_are_loaded(config, relational, single_table, generator):
    BenchmarkRunner(config, [relational], generator=generator).run()

    run = BenchmarkRunner(config, [relational, single_table], generator=generator).run()

    assert run.existing_data == ['Relational']
    assert {s.table_name for s in run.insert_summaries} == {config.single_table_name}
    assert len(relational.get_all_of_type(EntityType.USER).items) == config.user_count
    assert len(single_table.get_all_of_type(EntityType.USER).items) == config.user_count


def test_scenarios_cover_order_items_and_user_lookups(config, relational, single_table, generator):
    run = BenchmarkRunner(config, [relational, single_table], generator=generator).run()

    for design in (DesignType.RELATIONAL, DesignType.SINGLE_TABLE):
        by_name = {m.test_name: m for m in run.measurements if m.design == design}
        assert by_name['Get Users By Email'].item_count == 1
        assert by_name['Get Users By Status'].item_count == 1
        assert by_name['Get User Order Items'].item_count > 0
