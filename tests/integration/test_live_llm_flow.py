from __future__ import annotations


def test_live_llm_task_flow(api_base_url_live_llm: str, call_json) -> None:
    status, body = call_json(
        api_base_url_live_llm,
        "/tasks/process",
        method="POST",
        payload={
            "task": "Summarize the top three risks of a checkout migration in two sentences.",
            "priority": "high",
        },
    )
    assert status == 200
    data = body["data"]
    assert data["status"] == "success", data["response"]
    assert data["response"]
    assert data["metadata"]["model"]
    assert "simulated" not in data["metadata"]
