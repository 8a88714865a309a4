from fastapi.testclient import TestClient
from conftest import config_payload, task_payload
from stepsched.api import routes
from stepsched.main import app


client = TestClient(app)


class FakeCache:
    """In-memory stand-in for the redis-backed ScheduleCache."""

    def __init__(self):
        self.entries = {}

    def get(self, problem_hash):
        return self.entries.get(problem_hash)

    def set(self, problem_hash, result):
        self.entries[problem_hash] = result


def solve_payload(tasks, config):
    return {"tasks": task_payload(tasks), **config_payload(config)}


class TestSolveEndpoint:
    """Integration tests for /api/v1/schedule/solve."""

    def test_solve_pipeline(self, pipeline_tasks, pipeline_config):
        """Solve endpoint should return the optimal schedule."""
        response = client.post("/api/v1/schedule/solve", json=solve_payload(pipeline_tasks, pipeline_config))

        assert response.status_code == 200
        data = response.json()
        assert data["makespan"] == 105
        assert len(data["schedule"]) == 6
        assert data["schedule"][5] == 70
        assert data["evaluations"] > 0
        assert data["cached"] is False
        assert len(data["timeline"]) == 6

    def test_solve_parallel_query_param(self, small_tasks, small_config):
        sequential = client.post("/api/v1/schedule/solve", json=solve_payload(small_tasks, small_config))
        parallel = client.post("/api/v1/schedule/solve?parallel=true", json=solve_payload(small_tasks, small_config))
        assert parallel.status_code == 200
        assert parallel.json()["schedule"] == sequential.json()["schedule"]

    def test_tasks_reordered_by_id(self, small_tasks, small_config):
        payload = solve_payload(small_tasks, small_config)
        payload["tasks"].reverse()
        response = client.post("/api/v1/schedule/solve", json=payload)
        assert response.status_code == 200
        assert response.json()["makespan"] == 7

    def test_infeasible_returns_422(self, infeasible_scenario):
        tasks, config = infeasible_scenario
        response = client.post("/api/v1/schedule/solve", json=solve_payload(tasks, config))
        assert response.status_code == 422
        assert response.json()["detail"] == "No feasible schedule found"

    def test_precedence_cycle_returns_400(self, small_tasks):
        payload = {
            "tasks": task_payload(small_tasks),
            "precedences": [{"after": 0, "before": 1}, {"after": 1, "before": 0}],
        }
        response = client.post("/api/v1/schedule/solve", json=payload)
        assert response.status_code == 400
        assert "cycle" in response.json()["detail"]

    def test_invalid_duration_returns_422(self):
        payload = {"tasks": [{"id": 0, "resource_type": "sql", "duration": 0}]}
        response = client.post("/api/v1/schedule/solve", json=payload)
        assert response.status_code == 422

    def test_unknown_resource_type_returns_422(self):
        payload = {"tasks": [{"id": 0, "resource_type": "gpu", "duration": 5}]}
        response = client.post("/api/v1/schedule/solve", json=payload)
        assert response.status_code == 422

    def test_too_many_tasks_returns_422(self):
        payload = {
            "tasks": [{"id": i, "resource_type": "file", "duration": 1} for i in range(routes.settings.solver_max_tasks + 1)]
        }
        response = client.post("/api/v1/schedule/solve", json=payload)
        assert response.status_code == 422

    def test_empty_task_list_returns_422(self):
        response = client.post("/api/v1/schedule/solve", json={"tasks": []})
        assert response.status_code == 422


class TestResultCache:
    """Identical problems are answered from the cache when it is enabled."""

    def test_second_request_is_cached(self, monkeypatch, small_tasks, small_config):
        fake = FakeCache()
        monkeypatch.setattr(routes, "cache", fake)
        monkeypatch.setattr(routes.settings, "cache_enabled", True)

        first = client.post("/api/v1/schedule/solve", json=solve_payload(small_tasks, small_config))
        second = client.post("/api/v1/schedule/solve", json=solve_payload(small_tasks, small_config))

        assert first.json()["cached"] is False
        assert second.json()["cached"] is True
        assert second.json()["schedule"] == first.json()["schedule"]
        assert len(fake.entries) == 1

    def test_cache_ignored_when_disabled(self, monkeypatch, small_tasks, small_config):
        fake = FakeCache()
        monkeypatch.setattr(routes, "cache", fake)
        monkeypatch.setattr(routes.settings, "cache_enabled", False)

        client.post("/api/v1/schedule/solve", json=solve_payload(small_tasks, small_config))
        assert fake.entries == {}


class TestBenchmarkEndpoint:
    """Integration tests for /api/v1/schedule/benchmark."""

    def test_benchmark_compares_solvers(self, small_tasks, small_config):
        response = client.post("/api/v1/schedule/benchmark", json=solve_payload(small_tasks, small_config))

        assert response.status_code == 200
        data = response.json()
        assert data["num_tasks"] == 4
        names = [r["solver_name"] for r in data["results"]]
        assert names == ["backtracking", "ortools"]
        for result in data["results"]:
            assert result["success"] is True
            assert result["makespan"] == 7


class TestHealthCheck:
    """Integration test for health check endpoint."""

    def test_health_check(self):
        """Health endpoint should return OK."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert "app" in data
