"""Tests for the pull schedule refresh."""

from syndication.engine import PULL_JOB, REFRESH_JOB


class TestScheduleRefresh:
    """Tests for ScheduleRefresher through the engine."""

    def test_refresh_schedules_one_job_per_selected_endpoint(self, engine, scheduler, add_endpoint):
        a = add_endpoint("a", kind="rss_pull")
        b = add_endpoint("b", kind="xml_pull")
        add_endpoint("c", kind="rss_pull", groups=["sports"])
        add_endpoint("d", kind="rss_pull", enabled=False)

        scheduled = engine.refresh_schedules()

        assert sorted(scheduled) == [a, b]
        jobs = scheduler.jobs(PULL_JOB)
        assert sorted(job.args["endpoint_ids"][0] for job in jobs) == [a, b]
        assert all(job.interval_seconds == 3600 for job in jobs)

    def test_refresh_replaces_previous_jobs(self, engine, scheduler, store, add_endpoint):
        a = add_endpoint("a", kind="rss_pull")
        engine.refresh_schedules()
        store.set_enabled(a, False)

        assert engine.refresh_schedules() == []
        assert scheduler.jobs(PULL_JOB) == []

    def test_refresh_clears_pending_auto_retries(self, engine, scheduler, clock, add_endpoint):
        a = add_endpoint("a", kind="rss_pull")
        scheduler.schedule_once(PULL_JOB, clock.now.add(seconds=60), {"endpoint_ids": [a]})

        engine.refresh_schedules()

        assert all(job.recurring for job in scheduler.jobs(PULL_JOB))

    def test_requests_coalesce(self, engine, scheduler):
        assert engine.request_schedule_refresh()
        assert not engine.request_schedule_refresh()
        assert not engine.request_schedule_refresh()

        assert len(scheduler.jobs(REFRESH_JOB)) == 1

    def test_request_allowed_again_after_marker_expires(self, engine, scheduler, clock):
        engine.request_schedule_refresh()
        clock.advance(121)

        assert engine.request_schedule_refresh()
        assert len(scheduler.jobs(REFRESH_JOB)) == 1

    def test_deferred_refresh_runs_through_job_runner(self, engine, scheduler, clock, add_endpoint):
        a = add_endpoint("a", kind="rss_pull")
        engine.request_schedule_refresh()

        assert engine.run_due_jobs() == []
        clock.advance(60)
        runs = engine.run_due_jobs()

        assert [run.name for run in runs] == [REFRESH_JOB]
        assert runs[0].success
        assert [job.args for job in scheduler.jobs(PULL_JOB)] == [{"endpoint_ids": [a]}]
