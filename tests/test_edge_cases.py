import pytest
from app.engine.allocation import build_allocation_matrix, generate_suggestions
from app.engine.scenario import adjusted_risk
from app.models.entities import BusinessDriver, Project, ProjectScore, Resource, Task
from app.models.scenario import ScenarioProject


class TestEdgeCases:
    """Test edge cases and boundary conditions."""

    def test_zero_duration_task_rejected(self):
        """Task with zero duration cannot be built."""
        with pytest.raises(ValueError):
            Task(id="t1", project_id="p", name="Nothing", estimated_hours=10,
                 resource_id="r1", start_week=1, duration=0)

    def test_negative_duration_task_rejected(self):
        with pytest.raises(ValueError):
            Task(id="t1", project_id="p", name="Backwards", estimated_hours=10,
                 resource_id="r1", start_week=1, duration=-2)

    def test_non_positive_capacity_rejected(self):
        with pytest.raises(ValueError):
            Resource(id="r1", name="Nobody", capacity=0)

    def test_driver_weight_bounds(self):
        BusinessDriver(id="d", name="Edge", weight=0)
        BusinessDriver(id="d", name="Edge", weight=10)
        with pytest.raises(ValueError):
            BusinessDriver(id="d", name="Edge", weight=-1)

    def test_task_with_unknown_resource_is_skipped(self, team):
        """A dangling resource reference is ignored rather than crashing."""
        tasks = [
            Task(id="t1", project_id="p", name="Lost", estimated_hours=80,
                 resource_id="ghost", start_week=1, duration=1),
            Task(id="t2", project_id="p", name="Found", estimated_hours=20,
                 resource_id="alice", start_week=1, duration=1),
        ]
        matrix = build_allocation_matrix(team, tasks)
        assert "ghost" not in matrix
        assert matrix["alice"][1].total_hours == 20

    def test_single_week_task(self, team):
        task = Task(id="t1", project_id="p", name="Sprint", estimated_hours=45,
                    resource_id="carol", start_week=7, duration=1)
        matrix = build_allocation_matrix(team, [task])
        assert list(matrix["carol"]) == [7]
        assert matrix["carol"][7].total_hours == 45

    def test_many_tasks_same_cell_capped_at_five(self, team):
        """Heavy contention never produces more than five suggestions."""
        tasks = [
            Task(id=f"t{i}", project_id="p", name=f"Task {i}", estimated_hours=10,
                 resource_id="alice", start_week=1, duration=1)
            for i in range(12)
        ]
        suggestions = generate_suggestions(team, tasks, "alice", 1)
        assert len(suggestions) == 5
        assert [s.task_id for s in suggestions] == ["t0", "t1", "t2", "t3", "t4"]

    def test_fractional_hours(self, team):
        task = Task(id="t1", project_id="p", name="Thirds", estimated_hours=10,
                    resource_id="bob", start_week=1, duration=3)
        matrix = build_allocation_matrix(team, [task])
        assert sum(c.total_hours for c in matrix["bob"].values()) == pytest.approx(10)


class TestProjectValidation:
    """Projects and their driver scores reject out-of-range values."""

    def _project(self, **overrides):
        fields = dict(id="p", name="P", description="", budget=1000, risk=5,
                      start_week=1, duration=4, scores=[ProjectScore("d1", 5)])
        fields.update(overrides)
        return Project(**fields)

    def test_valid_bounds(self):
        self._project(budget=0, risk=1)
        self._project(risk=10, duration=1, scores=[ProjectScore("d1", 1), ProjectScore("d2", 10)])

    def test_negative_budget_rejected(self):
        """A negative budget would flip the sign of the budget risk term."""
        with pytest.raises(ValueError):
            self._project(budget=-1000)

    @pytest.mark.parametrize("risk", [0, 0.5, 10.5, 42])
    def test_risk_out_of_range_rejected(self, risk):
        with pytest.raises(ValueError):
            self._project(risk=risk)

    @pytest.mark.parametrize("duration", [0, -3])
    def test_non_positive_duration_rejected(self, duration):
        with pytest.raises(ValueError):
            self._project(duration=duration)

    @pytest.mark.parametrize("score", [0, 11, 99])
    def test_driver_score_out_of_range_rejected(self, score):
        with pytest.raises(ValueError):
            ProjectScore("d1", score)

    def test_extra_budget_never_raises_risk(self):
        project = self._project(budget=1000, risk=5)
        assert adjusted_risk(ScenarioProject(project, budget_change=500)) < project.risk
