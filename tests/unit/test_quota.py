"""Quota definition tests."""

from tenancy_fixtures.quota import (
    RUNAWAY_QUOTA_MEM_LIMIT,
    QuotaDefinition,
    runaway_update_args,
)


def test_default_create_args():
    assert QuotaDefinition(name='q1').create_args() == [
        'create-quota', 'q1',
        '-m', '10G',
        '-r', '1000',
        '-s', '100',
        '--allow-paid-service-plans',
    ]


def test_create_args_without_paid_plans():
    definition = QuotaDefinition(
        name='q1',
        total_services='5',
        total_routes='10',
        memory_limit='1G',
        allow_paid_service_plans=False,
    )
    assert definition.create_args() == [
        'create-quota', 'q1', '-m', '1G', '-r', '10', '-s', '5',
    ]


def test_runaway_args_are_stable():
    assert runaway_update_args('q1') == runaway_update_args('q1') == [
        'update-quota', 'q1', '-m', RUNAWAY_QUOTA_MEM_LIMIT, '-i=-1', '-s=-1',
    ]
    assert RUNAWAY_QUOTA_MEM_LIMIT == '99999G'
