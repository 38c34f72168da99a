import pytest

from longform_scripts.application.chunk_planner import (
    buffered_words,
    chunk_time_ranges,
    get_chunk_config,
    needs_chunking,
    total_minutes_for,
    words_for_minutes,
)
from longform_scripts.domain.errors import ConfigError


@pytest.mark.parametrize("minutes", range(1, 20))
def test_short_scripts_use_a_single_chunk(minutes):
    assert needs_chunking(minutes * 60) is False
    config = get_chunk_config(minutes)
    assert config.chunk_count == 1
    assert config.minutes_per_chunk == minutes


def test_chunking_starts_at_twenty_minutes():
    assert needs_chunking(19 * 60) is False
    assert needs_chunking(19 * 60 + 1) is True  # rounds up to 20 minutes
    assert needs_chunking(20 * 60) is True


@pytest.mark.parametrize("minutes", range(20, 31))
def test_twenty_to_thirty_minutes_use_two_chunks(minutes):
    config = get_chunk_config(minutes)
    assert config.chunk_count == 2
    assert config.chunk_count * config.minutes_per_chunk >= minutes


@pytest.mark.parametrize("minutes,count", [(31, 3), (45, 3), (46, 4), (60, 4), (61, 5), (90, 6), (95, 7)])
def test_tiers(minutes, count):
    config = get_chunk_config(minutes)
    assert config.chunk_count == count
    if minutes > 30:
        assert config.minutes_per_chunk == 15


def test_forty_minutes_splits_fifteen_fifteen_ten():
    config = get_chunk_config(40)
    ranges = chunk_time_ranges(40, config)
    assert ranges == [(0, 15), (15, 30), (30, 40)]
    assert [end - start for start, end in ranges] == [15, 15, 10]


def test_ranges_are_contiguous_and_cover_total():
    for minutes in (20, 27, 44, 59, 75, 120):
        ranges = chunk_time_ranges(minutes, get_chunk_config(minutes))
        assert ranges[0][0] == 0
        assert ranges[-1][1] == minutes
        for (_, end), (start, _) in zip(ranges, ranges[1:]):
            assert end == start


@pytest.mark.parametrize("bad", [0, -60, None])
def test_invalid_duration_raises_config_error(bad):
    with pytest.raises(ConfigError):
        needs_chunking(bad)
    with pytest.raises(ConfigError):
        total_minutes_for(bad)


def test_invalid_total_minutes_raises_config_error():
    with pytest.raises(ConfigError):
        get_chunk_config(0)


def test_word_targets():
    assert words_for_minutes(15) == 1950
    assert words_for_minutes(2.5) == 325
    assert buffered_words(1950) == 2145
    assert buffered_words(1300) == 1430
