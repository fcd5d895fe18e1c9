"""Shared test fixtures and configuration."""

from datetime import datetime, timezone

import boto3
import pytest
from moto import mock_aws

from core.config import BenchmarkConfig
from core.schema import create_tables
from designs import RelationalDesign, SingleTableDesign
from utils.data_generator import DataGenerator


REFERENCE_TIME = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch):
    """Mocked AWS credentials for moto."""
    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
    monkeypatch.setenv('AWS_SECURITY_TOKEN', 'testing')
    monkeypatch.setenv('AWS_SESSION_TOKEN', 'testing')
    monkeypatch.setenv('AWS_DEFAULT_REGION', 'us-east-1')


@pytest.fixture
def config(tmp_path):
    """Small, seeded configuration."""
    return BenchmarkConfig(
        region='us-east-1',
        user_count=3,
        post_count=6,
        comment_count=9,
        like_count=6,
        order_count=12,
        seed=7,
        order_item_count=8,
        output_dir=str(tmp_path),
    )


@pytest.fixture
def dynamodb_resource(config):
    """Mocked DynamoDB resource with every benchmark table created."""
    with mock_aws():
        resource = boto3.resource('dynamodb', region_name=config.region)
        create_tables(resource.meta.client, config, wait=False)
        yield resource


@pytest.fixture
def relational(config, dynamodb_resource):
    return RelationalDesign(config, resource=dynamodb_resource)


@pytest.fixture
def single_table(config, dynamodb_resource):
    return SingleTableDesign(config, resource=dynamodb_resource)


@pytest.fixture
def generator(config):
    return DataGenerator(seed=config.seed, reference_time=REFERENCE_TIME)


@pytest.fixture
def dataset(config, generator):
    return generator.generate_from_config(config)


@pytest.fixture
def loaded(relational, single_table, dataset):
    """Both designs loaded with the same data set."""
    relational.insert_dataset(dataset)
    single_table.insert_dataset(dataset)
    return dataset
