import pytest
from app.engine.allocation import (
    apply_suggestion,
    build_allocation_matrix,
    cell_display_status,
    cell_hours,
    classify_cell,
    generate_suggestions,
    resource_utilization,
    total_weeks,
)
from app.models.entities import CellStatus, Resource, SuggestionType, Task


class TestAllocationMatrix:
    """Unit tests for weekly hour aggregation."""

    def test_hours_spread_evenly_over_duration(self, team, contended_tasks):
        """Each task puts estimated_hours / duration into each of its weeks."""
        matrix = build_allocation_matrix(team, contended_tasks)
        alice = matrix["alice"]

        assert alice[3].total_hours == pytest.approx(30)
        assert alice[4].total_hours == pytest.approx(30)
        assert alice[5].total_hours == pytest.approx(60)
        assert alice[6].total_hours == pytest.approx(30)
        assert 2 not in alice
        assert 7 not in alice

    def test_task_hours_sum_to_estimate(self, team):
        """Summed across weeks, a task's contribution equals its estimate."""
        task = Task(id="t", project_id="p", name="Odd split", estimated_hours=100,
                    resource_id="carol", start_week=2, duration=3)
        matrix = build_allocation_matrix(team, [task])
        assert sum(c.total_hours for c in matrix["carol"].values()) == pytest.approx(100)
        assert sorted(matrix["carol"]) == [2, 3, 4]

    def test_every_resource_has_entry(self, team):
        """Resources without tasks still appear with no cells."""
        matrix = build_allocation_matrix(team, [])
        assert set(matrix) == {"alice", "bob", "carol"}
        assert all(cells == {} for cells in matrix.values())

    def test_unassigned_tasks_contribute_nothing(self, team, contended_tasks):
        matrix = build_allocation_matrix(team, contended_tasks)
        all_ids = {t.id for cells in matrix.values() for c in cells.values() for t in c.tasks}
        assert "t4" not in all_ids

    def test_cell_lists_contributing_tasks(self, team, contended_tasks):
        matrix = build_allocation_matrix(team, contended_tasks)
        assert [t.id for t in matrix["alice"][5].tasks] == ["t1", "t2"]
        assert [t.id for t in matrix["bob"][5].tasks] == ["t3"]

    def test_cell_hours_defaults_to_zero(self, team, contended_tasks):
        matrix = build_allocation_matrix(team, contended_tasks)
        assert cell_hours(matrix, "carol", 5) == 0.0
        assert cell_hours(matrix, "nobody", 5) == 0.0

    def test_utilization_summary(self, team, contended_tasks):
        matrix = build_allocation_matrix(team, contended_tasks)
        summary = resource_utilization(team, matrix)
        assert summary["alice"]["peak_hours"] == pytest.approx(60)
        assert summary["alice"]["over_allocated_weeks"] == 1
        assert summary["carol"] == {"peak_hours": 0.0, "over_allocated_weeks": 0}


class TestClassification:
    """Cell status relative to capacity."""

    def test_over_when_strictly_above_capacity(self):
        assert classify_cell(40.5, 40) == CellStatus.OVER
        assert classify_cell(40, 40) == CellStatus.OPTIMAL

    def test_under_below_three_quarters(self):
        """20h on a 40h resource is under-utilized (20 < 30)."""
        assert classify_cell(20, 40) == CellStatus.UNDER
        assert classify_cell(29.9, 40) == CellStatus.UNDER

    def test_optimal_at_three_quarters(self):
        assert classify_cell(30, 40) == CellStatus.OPTIMAL

    def test_zero_hours_is_optimal_but_displays_empty(self):
        assert classify_cell(0, 40) == CellStatus.OPTIMAL
        assert cell_display_status(0, 40) == CellStatus.EMPTY
        assert cell_display_status(50, 40) == CellStatus.OVER

    def test_custom_ratio(self):
        assert classify_cell(30, 40, under_ratio=0.9) == CellStatus.UNDER


class TestSuggestions:
    """Delay and reassignment suggestions for over-allocated cells."""

    def test_two_tasks_over_capacity_get_delay_each(self):
        """Two 30h tasks on a 40h resource in week 5 yield a delay per task."""
        resources = [Resource(id="r1", name="Solo", capacity=40)]
        tasks = [
            Task(id="a", project_id="p", name="A", estimated_hours=30, resource_id="r1", start_week=5, duration=1),
            Task(id="b", project_id="p", name="B", estimated_hours=30, resource_id="r1", start_week=5, duration=1),
        ]
        suggestions = generate_suggestions(resources, tasks, "r1", 5)

        assert [s.type for s in suggestions] == [SuggestionType.DELAY, SuggestionType.DELAY]
        assert [s.task_id for s in suggestions] == ["a", "b"]
        assert suggestions[0].message == 'Delay "A" by 1 week.'
        assert suggestions[0].new_start_week == 6

    def test_order_and_truncation(self, team, contended_tasks):
        """Delays first, then reassignments task by task in resource order, max five."""
        suggestions = generate_suggestions(team, contended_tasks, "alice", 5)

        assert len(suggestions) == 5
        assert [(s.type, s.task_id, s.target_resource_id) for s in suggestions] == [
            (SuggestionType.DELAY, "t1", None),
            (SuggestionType.DELAY, "t2", None),
            (SuggestionType.REASSIGN, "t1", "bob"),
            (SuggestionType.REASSIGN, "t1", "carol"),
            (SuggestionType.REASSIGN, "t2", "bob"),
        ]
        assert suggestions[2].message == 'Reassign "Design" to Bob.'

    def test_limit_is_configurable(self, team, contended_tasks):
        suggestions = generate_suggestions(team, contended_tasks, "alice", 5, max_suggestions=10)
        assert len(suggestions) == 6

    def test_reassignment_requires_room(self, team, contended_tasks):
        """A resource that cannot absorb the weekly hours is not suggested."""
        busy = contended_tasks + [
            Task(id="t5", project_id="p2", name="Ops", estimated_hours=15,
                 resource_id="bob", start_week=5, duration=1),
        ]
        suggestions = generate_suggestions(team, busy, "alice", 5, max_suggestions=10)
        targets = [s.target_resource_id for s in suggestions if s.type == SuggestionType.REASSIGN]
        # bob at 25h can't take 30h more; carol at 0h can
        assert targets == ["carol", "carol"]

    def test_full_resources_are_not_candidates(self, team, contended_tasks):
        """A resource exactly at capacity is not under-allocated."""
        full = contended_tasks + [
            Task(id="t5", project_id="p2", name="Ops", estimated_hours=30,
                 resource_id="bob", start_week=5, duration=1),
            Task(id="t6", project_id="p2", name="Support", estimated_hours=30,
                 resource_id="carol", start_week=5, duration=1),
        ]
        suggestions = generate_suggestions(team, full, "alice", 5)
        assert all(s.type == SuggestionType.DELAY for s in suggestions)

    def test_no_suggestions_for_optimal_under_or_empty_cells(self, team, contended_tasks):
        assert generate_suggestions(team, contended_tasks, "alice", 3) == []
        assert generate_suggestions(team, contended_tasks, "bob", 5) == []
        assert generate_suggestions(team, contended_tasks, "carol", 5) == []

    def test_unknown_resource_yields_nothing(self, team, contended_tasks):
        assert generate_suggestions(team, contended_tasks, "ghost", 5) == []

    def test_suggestions_are_deterministic(self, team, contended_tasks):
        first = generate_suggestions(team, contended_tasks, "alice", 5)
        second = generate_suggestions(team, contended_tasks, "alice", 5)
        assert first == second


class TestApplySuggestion:
    """Applying a suggestion changes exactly one field of one task."""

    def test_delay_moves_start_week_only(self, team, contended_tasks):
        delay = generate_suggestions(team, contended_tasks, "alice", 5)[0]
        updated = apply_suggestion(contended_tasks, delay)

        before = {t.id: t for t in contended_tasks}
        after = {t.id: t for t in updated}
        assert after["t1"].start_week == before["t1"].start_week + 1
        assert after["t1"].resource_id == before["t1"].resource_id
        assert after["t1"].duration == before["t1"].duration
        assert after["t1"].estimated_hours == before["t1"].estimated_hours
        for tid in ("t2", "t3", "t4"):
            assert after[tid] == before[tid]

    def test_reassign_changes_resource_only(self, team, contended_tasks):
        reassign = generate_suggestions(team, contended_tasks, "alice", 5)[2]
        updated = apply_suggestion(contended_tasks, reassign)

        after = {t.id: t for t in updated}
        assert after["t1"].resource_id == "bob"
        assert after["t1"].start_week == 3
        assert [t.id for t in updated] == [t.id for t in contended_tasks]
        assert updated[1:] == contended_tasks[1:]

    def test_original_list_untouched(self, team, contended_tasks):
        snapshot = list(contended_tasks)
        apply_suggestion(contended_tasks, generate_suggestions(team, contended_tasks, "alice", 5)[0])
        assert contended_tasks == snapshot

    def test_delay_resolves_overlap(self, team, contended_tasks):
        """Delaying the second task moves its load out of week 5."""
        delay_t2 = generate_suggestions(team, contended_tasks, "alice", 5)[1]
        matrix = build_allocation_matrix(team, apply_suggestion(contended_tasks, delay_t2))
        assert matrix["alice"][5].total_hours == pytest.approx(30)
        assert matrix["alice"][7].total_hours == pytest.approx(30)


class TestHorizon:
    def test_total_weeks_uses_latest_end(self, projects, contended_tasks):
        # p2 ends at 4 + 12
        assert total_weeks(projects, contended_tasks) == 16

    def test_total_weeks_empty_is_zero(self):
        assert total_weeks([], []) == 0
