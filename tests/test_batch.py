"""Unit tests for BatchController."""

import pytest
from PySide6.QtCore import QThreadPool

from conftest import BarrierConnector, ScriptedConnector, ipv4, ipv6
from eyeballs.batch import DEFAULT_MAX_CONCURRENT, BatchController
from eyeballs.connector import TcpConnector
from eyeballs.errors import NotConnectedYet, WorkerFailure
from eyeballs.fake_resolver import StaticResolver
from eyeballs.models import HostState
from eyeballs.resolver import SystemResolver


class TestBatchControllerSetup:
    """Test host management and defaults."""

    def test_initial_state(self):
        controller = BatchController()

        assert controller.get_hosts() == []
        assert controller.get_failures() == []
        assert isinstance(controller.resolver, SystemResolver)
        assert isinstance(controller.connector, TcpConnector)
        assert isinstance(controller.thread_pool, QThreadPool)
        assert controller.thread_pool.maxThreadCount() == DEFAULT_MAX_CONCURRENT

    def test_hosts_keep_batch_order(self):
        controller = BatchController(["b.example", "a.example", "c.example"])

        assert [h.url for h in controller.get_hosts()] == ["b.example", "a.example", "c.example"]

    def test_blank_hosts_ignored(self):
        controller = BatchController(["a.example", "  ", ""])

        assert [h.url for h in controller.get_hosts()] == ["a.example"]
        assert controller.add_host("   ") is None

    def test_repeated_hostnames_get_one_host_per_record(self):
        controller = BatchController(["a.example", "b.example", "a.example"])

        hosts = controller.get_hosts()
        assert [h.url for h in hosts] == ["a.example", "b.example", "a.example"]
        assert hosts[0] is not hosts[2]
        assert controller.add_host("a.example") is not None
        assert len(controller.get_hosts()) == 4

    def test_invalid_limits(self):
        with pytest.raises(ValueError, match="max_concurrent"):
            BatchController(max_concurrent=0)
        with pytest.raises(ValueError, match="race_concurrency"):
            BatchController(race_concurrency=0)

    def test_signals_exist(self):
        controller = BatchController()

        assert hasattr(controller, "phase_finished")
        assert hasattr(controller, "host_failed")


class TestResolveAll:
    """Test the resolve phase."""

    def test_canonicalized_after_multiple_attempts(self):
        resolver = StaticResolver(
            {
                "a.example": [[ipv4(9), ipv4(3), ipv6(2)], [ipv4(1), ipv4(9), ipv6(2), ipv6(1)]],
                "b.example": [[ipv4(5)]],
            }
        )
        controller = BatchController(["a.example", "b.example"], resolver=resolver)

        controller.resolve_all(3)

        a, b = controller.get_hosts()
        assert a.v4 == [ipv4(1), ipv4(3), ipv4(9)]
        assert a.v6 == [ipv6(1), ipv6(2)]
        assert b.v4 == [ipv4(5)]
        assert resolver.query_count("a.example") == 3
        assert a.state == HostState.RESOLVED

    def test_rerun_with_stable_answers_is_idempotent(self):
        resolver = StaticResolver({"a.example": [[ipv4(2), ipv4(1), ipv6(1)]]})
        controller = BatchController(["a.example"], resolver=resolver)

        controller.resolve_all(1)
        first = (controller.get_hosts()[0].v4, controller.get_hosts()[0].v6)
        controller.resolve_all(2)
        second = (controller.get_hosts()[0].v4, controller.get_hosts()[0].v6)

        assert first == second

    def test_unresolvable_hosts_do_not_block_others(self):
        hostnames = [f"h{i}.example" for i in range(10)]
        resolver = StaticResolver({name: [[ipv4(i + 1)]] for i, name in enumerate(hostnames) if i % 3})
        controller = BatchController(hostnames, resolver=resolver)

        controller.resolve_all(1)

        for i, host in enumerate(controller.get_hosts()):
            if i % 3:
                assert host.v4 == [ipv4(i + 1)]
            else:
                assert host.v4 == []
                assert host.v6 == []
        assert controller.get_failures() == []

    def test_attempts_must_be_positive(self):
        controller = BatchController(["a.example"], resolver=StaticResolver())

        with pytest.raises(ValueError, match="attempts"):
            controller.resolve_all(0)

    def test_phase_finished_emitted(self):
        controller = BatchController(["a.example"], resolver=StaticResolver())
        phases = []
        controller.phase_finished.connect(lambda phase: phases.append(phase))

        controller.resolve_all(1)
        controller.time_all()
        controller.race_all()

        assert phases == ["resolve", "time", "race"]


class TestWorkerFailures:
    """Test that a crashing worker is isolated to its host."""

    def test_crashing_resolver_recorded_and_isolated(self):
        class FlakyResolver(StaticResolver):
            def lookup(self, hostname):
                if hostname == "bad.example":
                    raise RuntimeError("resolver crashed")
                return super().lookup(hostname)

        resolver = FlakyResolver({"good.example": [[ipv4(1)]]})
        controller = BatchController(["bad.example", "good.example"], resolver=resolver)

        controller.resolve_all(1)

        bad, good = controller.get_hosts()
        assert good.v4 == [ipv4(1)]
        assert bad.v4 == []

        failures = controller.get_failures()
        assert len(failures) == 1
        assert isinstance(failures[0], WorkerFailure)
        assert failures[0].host == "bad.example"
        assert failures[0].phase == "resolve"
        assert controller.get_stats()["failures"] == 1
        assert controller.get_stats()["in_flight"] == 0


class TestTimeAndRace:
    """Test the time and race phases across a batch."""

    def test_time_all(self, clock):
        resolver = StaticResolver(
            {
                "a.example": [[ipv4(1), ipv4(2), ipv6(1)]],
                "b.example": [[ipv6(2)]],
            }
        )
        connector = ScriptedConnector({ipv4(1): 100, ipv4(2): None, ipv6(1): 50, ipv6(2): None}, clock=clock)
        controller = BatchController(
            ["a.example", "b.example"], resolver=resolver, connector=connector, max_concurrent=1
        )

        controller.resolve_all(1)
        controller.time_all()

        a, b = controller.get_hosts()
        assert a.connect_time_v4 == 100
        assert a.connect_time_v6 == 50
        assert b.connect_time_v4 == 0
        assert b.connect_time_v6 == 0

    def test_winning_connection_missing_before_race(self):
        resolver = StaticResolver({"a.example": [[ipv4(1)]], "b.example": [[ipv4(2)]]})
        controller = BatchController(["a.example", "b.example"], resolver=resolver)
        controller.resolve_all(1)

        for host in controller.get_hosts():
            with pytest.raises(NotConnectedYet):
                _ = host.winning_connection

    def test_race_all_connects_reachable_hosts(self):
        resolver = StaticResolver(
            {
                "up.example": [[ipv4(1), ipv4(2)]],
                "down.example": [[ipv4(3)]],
                "v6only.example": [[ipv6(1)]],
            }
        )
        connector = ScriptedConnector({ipv4(1): 10, ipv4(2): 10, ipv4(3): None, ipv6(1): 10})
        controller = BatchController(
            ["up.example", "down.example", "v6only.example"], resolver=resolver, connector=connector
        )

        controller.resolve_all(1)
        controller.race_all()

        up, down, v6only = controller.get_hosts()
        assert up.connected is True
        assert up.winning_connection.address in (ipv4(1), ipv4(2))
        assert down.connected is False
        assert v6only.connected is False
        assert controller.get_stats()["connected"] == 1
        assert all(h.state == HostState.RACED for h in controller.get_hosts())

    def test_race_all_simultaneous_completion(self):
        addresses = [ipv4(i) for i in range(1, 5)]
        resolver = StaticResolver({"a.example": [addresses]})
        connector = BarrierConnector(len(addresses))
        controller = BatchController(
            ["a.example"], resolver=resolver, connector=connector, race_concurrency=len(addresses)
        )

        controller.resolve_all(1)
        controller.race_all()

        host = controller.get_hosts()[0]
        assert host.connected is True
        assert sum(1 for c in connector.connections if not c.closed) == 1

    def test_close_closes_winners(self):
        resolver = StaticResolver({"a.example": [[ipv4(1)]]})
        connector = ScriptedConnector({ipv4(1): 10})
        controller = BatchController(["a.example"], resolver=resolver, connector=connector)
        controller.resolve_all(1)
        controller.race_all()

        controller.close()

        host = controller.get_hosts()[0]
        assert host.winning_connection.closed is True
        assert host.connected is True

    def test_stats_report_combined_attempt_ceiling(self):
        controller = BatchController(["a.example"], max_concurrent=4, race_concurrency=3)

        stats = controller.get_stats()

        assert stats["max_concurrent"] == 4
        assert stats["race_concurrency"] == 3
        assert stats["max_attempts"] == 12
