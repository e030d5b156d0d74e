from sca.profiling import Profiler, profile, profile_block, profiler


def test_disabled_profiler_records_nothing():
    p = Profiler()
    p.record('phase', 1.0)
    assert not p.stats


def test_decorator_and_block_record_when_enabled():
    @profile
    def work(x):
        return x * 2

    profiler.reset()
    profiler.enabled = True
    try:
        assert work(3) == 6
        with profile_block('block'):
            pass
    finally:
        profiler.enabled = False

    assert profiler.stats[work.__qualname__]['calls'] == 1
    assert profiler.stats['block']['calls'] == 1
    assert 'block' in profiler.report()
    profiler.reset()
