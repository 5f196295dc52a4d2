"""Tests for the per-tab statistics cache."""

import pytest

from burnout_survey.errors import ApiError
from burnout_survey.gateway.base import (
    CUSTOM_STATS_ENDPOINT,
    DETAILED_STATS_ENDPOINT,
    GLOBAL_STATS_ENDPOINT,
    TABLE_STATS_ENDPOINT,
)
from burnout_survey.statistics import TAB_FAILURE_NOTICES, StatisticsCache

from conftest import CUSTOM_STATS, DETAILED_STATS, FakeGateway


@pytest.mark.asyncio
async def test_tab_loads_on_first_activation_only(gateway):
    cache = StatisticsCache()
    assert not cache.is_loaded("demographics")

    view = await cache.activate("demographics", gateway, "tok")
    await cache.activate("demographics", gateway, "tok")

    assert view.sources == {"detailed": DETAILED_STATS}
    assert cache.is_loaded("demographics")
    assert len(gateway.calls_to(DETAILED_STATS_ENDPOINT)) == 1
    assert gateway.calls[0]["token"] == "tok"


@pytest.mark.asyncio
async def test_tabs_share_sources(gateway):
    cache = StatisticsCache()

    await cache.activate("demographics", gateway, "tok")
    await cache.activate("questions", gateway, "tok")
    await cache.activate("custom", gateway, "tok")
    radar = await cache.activate("radar", gateway, "tok")

    assert len(gateway.calls_to(DETAILED_STATS_ENDPOINT)) == 1
    assert len(gateway.calls_to(GLOBAL_STATS_ENDPOINT)) == 1
    assert len(gateway.calls_to(CUSTOM_STATS_ENDPOINT)) == 1
    assert radar.sources["custom"] == CUSTOM_STATS


@pytest.mark.asyncio
async def test_failure_is_reported_and_retried_on_next_activation():
    gateway = FakeGateway({TABLE_STATS_ENDPOINT: ApiError("down", status_code=500)})
    cache = StatisticsCache()

    view = await cache.activate("table", gateway, "tok")

    assert view.empty
    assert view.error == TAB_FAILURE_NOTICES["table"]
    assert not cache.is_loaded("table")

    gateway.results[TABLE_STATS_ENDPOINT] = {"genders": []}
    view = await cache.activate("table", gateway, "tok")
    assert not view.empty
    assert len(gateway.calls_to(TABLE_STATS_ENDPOINT)) == 2


@pytest.mark.asyncio
async def test_partial_failure_keeps_the_source_that_succeeded():
    gateway = FakeGateway({CUSTOM_STATS_ENDPOINT: ApiError("down", status_code=500)})
    cache = StatisticsCache()

    view = await cache.activate("radar", gateway, "tok")
    assert view.error == TAB_FAILURE_NOTICES["radar"]

    await cache.activate("global", gateway, "tok")
    assert len(gateway.calls_to(GLOBAL_STATS_ENDPOINT)) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [None, [], "ok"])
async def test_non_object_body_is_treated_as_a_failed_source(body):
    gateway = FakeGateway({DETAILED_STATS_ENDPOINT: body})
    cache = StatisticsCache()

    view = await cache.activate("demographics", gateway, "tok")

    assert view.empty
    assert view.error == TAB_FAILURE_NOTICES["demographics"]
    assert not cache.is_loaded("demographics")

    gateway.results[DETAILED_STATS_ENDPOINT] = DETAILED_STATS
    view = await cache.activate("demographics", gateway, "tok")
    assert view.sources == {"detailed": DETAILED_STATS}


@pytest.mark.asyncio
async def test_invalidate_forces_a_reload(gateway):
    cache = StatisticsCache()
    await cache.activate("global", gateway, "tok")

    cache.invalidate()
    await cache.activate("global", gateway, "tok")

    assert len(gateway.calls_to(GLOBAL_STATS_ENDPOINT)) == 2


@pytest.mark.asyncio
async def test_unknown_tab_is_rejected(gateway):
    with pytest.raises(KeyError):
        await StatisticsCache().activate("pivot", gateway, "tok")
