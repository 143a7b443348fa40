"""
Tests for the composition root
"""

import logging

import pytest
from pydantic import ValidationError as PydanticValidationError

from edtech.main import AppContext, build_context, lifespan, setup_logging
from edtech.services import analytics

from conftest import ADMIN, InMemoryGateway, seed_tables


@pytest.mark.asyncio
async def test_lifespan_wires_and_tears_down(settings):
    gateway = InMemoryGateway(seed_tables())

    async with lifespan(settings, gateway) as context:
        await context.identity.sign_in(ADMIN)

        assert len(context.store.courses) == 3
        kpis = analytics.dashboard_kpis(context.store.snapshot)
        assert kpis.active_students == 2
        assert len(await context.students.list_students()) == 2

    assert gateway.closed
    assert context.identity.principal is None


def test_build_context_shares_dependencies(settings):
    gateway = InMemoryGateway()
    context = build_context(settings, gateway)

    assert context.store.gateway is gateway
    assert context.store.identity is context.identity
    assert context.students.gateway is gateway



def test_app_context_checks_its_parts(settings):
    context = build_context(settings, InMemoryGateway())

    with pytest.raises(PydanticValidationError):
        AppContext(**dict(context, gateway=object()))


def test_setup_logging_level(settings):
    logger = setup_logging(settings.model_copy(update={"log_level": "warning"}))

    assert logger.name == "edtech"
    assert logging.getLogger().level == logging.WARNING
    assert logging.getLogger("httpx").level == logging.WARNING
