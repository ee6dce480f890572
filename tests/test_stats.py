import threading

from aelira.stats import StatsManager


def test_increment_api_request():
    stats = StatsManager()
    stats.increment_api_request("/v4/info")
    stats.increment_api_request("/v4/info")
    stats.increment_api_request("/v4/loadtracks")
    assert stats.api_stats() == {"/v4/info": 2, "/v4/loadtracks": 1}


def test_api_stats_is_a_snapshot():
    stats = StatsManager()
    stats.increment_api_request("/v4/info")
    snapshot = stats.api_stats()
    stats.increment_api_request("/v4/info")
    assert snapshot == {"/v4/info": 1}


def test_errors_counted_separately():
    stats = StatsManager()
    stats.increment_api_error("/v4/info")
    assert stats.api_errors["/v4/info"] == 1
    assert stats.api_stats() == {}


def test_player_counts():
    stats = StatsManager()
    assert (stats.players, stats.playing_players) == (0, 0)
    stats.set_players(5)
    stats.set_playing_players(2)
    assert (stats.players, stats.playing_players) == (5, 2)


def test_concurrent_increments():
    stats = StatsManager()

    def work():
        for _ in range(1000):
            stats.increment_api_request("/v4/stats")

    threads = [threading.Thread(target=work) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert stats.api_stats()["/v4/stats"] == 4 * 1000