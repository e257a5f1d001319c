"""Interactive command-line client for the task assistant API.

The CLI only talks HTTP; it never opens the database itself.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from collections.abc import Callable
from datetime import datetime
from typing import Any
from urllib import error, parse, request

from .app.logging_setup import configure_logging

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:3000"
EXAMPLE_TASKS = (
    "analyze leads",
    "summarize calls",
    "update client report",
    "create marketing strategy",
    "review sales performance",
)
RULE = "=" * 40


class ApiError(RuntimeError):
    """Raised when the API answers with an error envelope or cannot be reached."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _request_json(
    *,
    method: str,
    url: str,
    payload: dict[str, Any] | None = None,
    timeout_s: float = 30.0,
) -> tuple[int, Any]:
    raw_payload: bytes | None = None
    headers = {"Accept": "application/json", "User-Agent": "assistant-cli"}
    if payload is not None:
        raw_payload = json.dumps(payload).encode("utf-8")
        headers["Content-Type"] = "application/json"

    req = request.Request(url=url, method=method, data=raw_payload, headers=headers)
    try:
        with request.urlopen(req, timeout=timeout_s) as response:
            body = response.read().decode("utf-8")
            return response.status, _decode_body(body)
    except error.HTTPError as exc:
        body = exc.read().decode("utf-8", errors="replace")
        return exc.code, _decode_body(body)
    except error.URLError as exc:
        raise ApiError(f"Cannot reach API at {url}: {exc.reason}") from exc


def _decode_body(body: str) -> Any:
    if not body:
        return {}
    try:
        return json.loads(body)
    except json.JSONDecodeError:
        return {"raw": body}


class AssistantClient:
    """Thin wrapper over the HTTP endpoints; returns the envelope's ``data``."""

    def __init__(self, base_url: str = DEFAULT_BASE_URL, *, timeout_s: float = 30.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s

    def process_task(
        self,
        task: str,
        *,
        context: str | None = None,
        priority: str | None = "medium",
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"task": task}
        if context:
            payload["context"] = context
        if priority:
            payload["priority"] = priority
        return self._call("POST", "/tasks/process", payload=payload)

    def list_logs(self, limit: int = 10, offset: int = 0) -> list[dict[str, Any]]:
        return self._call("GET", "/tasks/logs", params={"limit": limit, "offset": offset}) or []

    def get_log(self, log_id: str) -> dict[str, Any]:
        return self._call("GET", f"/tasks/logs/{parse.quote(log_id, safe='')}")

    def delete_log(self, log_id: str) -> bool:
        """Return False when the log does not exist."""
        try:
            self._call("DELETE", f"/tasks/logs/{parse.quote(log_id, safe='')}")
        except ApiError as exc:
            if exc.status_code == 404:
                return False
            raise
        return True

    def delete_all_logs(self) -> int:
        data = self._call("DELETE", "/tasks/logs") or {}
        return int(data.get("deletedCount", 0))

    def get_stats(self) -> dict[str, Any]:
        return self._call("GET", "/tasks/stats") or {}

    def health(self) -> dict[str, Any]:
        return self._call("GET", "/health", allow_status={503}) or {}

    def _call(
        self,
        method: str,
        path: str,
        *,
        payload: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        allow_status: set[int] | None = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        if params:
            url = f"{url}?{parse.urlencode(params)}"
        status_code, body = _request_json(
            method=method, url=url, payload=payload, timeout_s=self.timeout_s
        )
        envelope = body if isinstance(body, dict) else {}
        if status_code >= 400 and status_code not in (allow_status or set()):
            message = envelope.get("error") or envelope.get("message") or f"HTTP {status_code}"
            raise ApiError(str(message), status_code=status_code)
        return envelope.get("data")


def _format_time(timestamp: str | None) -> str:
    if not timestamp:
        return "-"
    try:
        moment = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return timestamp
    return moment.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def print_banner(out: Callable[[str], None] = print) -> None:
    out("")
    out("Task Assistant - CLI")
    out(RULE)
    out("Type a task or a command (help for the list).")
    out("Example tasks: " + ", ".join(f'"{task}"' for task in EXAMPLE_TASKS[:3]))
    out(RULE)


def print_help(out: Callable[[str], None] = print) -> None:
    out("")
    out("Available commands:")
    out("  help        - Show this help message")
    out("  logs        - View recent interaction logs")
    out("  show <id>   - Show one interaction log with its response")
    out("  stats       - Show task processing statistics")
    out("  delete <id> - Delete a specific log by ID")
    out("  clear-all   - Delete all interaction logs")
    out("  clear       - Clear the screen")
    out("  exit        - Quit the application")
    out("")
    out("Task examples:")
    for task in EXAMPLE_TASKS:
        out(f'  - "{task}"')
    out("")


def print_task_result(result: dict[str, Any], out: Callable[[str], None] = print) -> None:
    out("")
    out("Task completed" if result.get("status") == "success" else "Task failed")
    out(RULE)
    out(f"Task: {result.get('task', '')}")
    out(f"Processing Time: {result.get('processingTime', 0)}ms")
    out(f"Timestamp: {_format_time(result.get('timestamp'))}")
    out(f"Status: {str(result.get('status', '')).upper()}")
    out("")
    out("Response:")
    out(RULE)
    out(str(result.get("response", "")))
    out("")


def handle_command(
    client: AssistantClient,
    line: str,
    *,
    priority: str | None = "medium",
    out: Callable[[str], None] = print,
) -> bool:
    """Run one REPL line. Returns False when the session should end."""
    text = line.strip()
    command = text.lower()

    if not command:
        return True
    if command in {"exit", "quit"}:
        out("Goodbye!")
        return False

    try:
        if command == "help":
            print_help(out)
        elif command == "clear":
            out("\033[2J\033[H")
        elif command == "logs":
            _show_logs(client, out)
        elif command == "stats":
            _show_stats(client, out)
        elif command == "clear-all":
            _clear_all(client, out)
        elif command == "delete" or command.startswith("delete "):
            _delete(client, text[len("delete"):].strip(), out)
        elif command == "show" or command.startswith("show "):
            _show_log(client, text[len("show"):].strip(), out)
        else:
            out("Processing task...")
            print_task_result(client.process_task(text, priority=priority), out)
    except ApiError as exc:
        logger.debug("cli event=api_error command=%r status=%s", command, exc.status_code)
        out(f"Error: {exc}")
        out("")
    return True


def _show_logs(client: AssistantClient, out: Callable[[str], None]) -> None:
    logs = client.list_logs(limit=10)
    out("")
    out("Recent Interaction Logs")
    out(RULE)
    if not logs:
        out("No interaction logs found.")
        out("")
        return
    for index, log in enumerate(logs, start=1):
        out(f"{index}. {log.get('task', '')}")
        out(f"   Status: {str(log.get('status', '')).upper()}")
        out(f"   Time: {_format_time(log.get('timestamp'))}")
        out(f"   Duration: {log.get('processingTime', 0)}ms")
        out(f"   ID: {log.get('id', '')}")
    out("")


def _show_log(client: AssistantClient, log_id: str, out: Callable[[str], None]) -> None:
    if not log_id:
        out("Please provide a log ID. Usage: show <log-id>")
        return
    try:
        log = client.get_log(log_id)
    except ApiError as exc:
        if exc.status_code == 404:
            out(f'Log with ID "{log_id}" not found')
            return
        raise
    print_task_result(log, out)


def _show_stats(client: AssistantClient, out: Callable[[str], None]) -> None:
    stats = client.get_stats()
    out("")
    out("Task Processing Statistics")
    out(RULE)
    out(f"Total Interactions: {stats.get('totalInteractions', 0)}")
    out(f"Success Rate: {float(stats.get('successRate', 0)):.1f}%")
    out(f"Average Processing Time: {float(stats.get('averageProcessingTime', 0)):.0f}ms")
    out("")


def _delete(client: AssistantClient, log_id: str, out: Callable[[str], None]) -> None:
    if not log_id:
        out("Please provide a valid log ID. Usage: delete <log-id>")
        return
    if client.delete_log(log_id):
        out(f"Successfully deleted log with ID: {log_id}")
    else:
        out(f'Log with ID "{log_id}" not found')


def _clear_all(client: AssistantClient, out: Callable[[str], None]) -> None:
    deleted_count = client.delete_all_logs()
    if deleted_count > 0:
        out(f"Successfully deleted {deleted_count} interaction logs")
    else:
        out("No logs found to delete")


def run_repl(
    client: AssistantClient,
    *,
    priority: str | None = "medium",
    input_fn: Callable[[str], str] = input,
    out: Callable[[str], None] = print,
) -> None:
    print_banner(out)
    while True:
        try:
            line = input_fn("> ")
        except (EOFError, KeyboardInterrupt):
            out("Goodbye!")
            return
        if not handle_command(client, line, priority=priority, out=out):
            return


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Talk to the task assistant API.")
    parser.add_argument(
        "--base-url",
        default=os.getenv("ASSISTANT_API_URL", DEFAULT_BASE_URL),
        help="API base URL (env ASSISTANT_API_URL).",
    )
    parser.add_argument(
        "--priority",
        choices=("low", "medium", "high"),
        default="medium",
        help="Priority sent with each task.",
    )
    parser.add_argument("--context", default=None, help="Context sent with a one-shot task.")
    parser.add_argument("--timeout", type=float, default=30.0, help="HTTP timeout in seconds.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    parser.add_argument("task", nargs="*", help="Process this task once and exit.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.WARNING)
    client = AssistantClient(args.base_url, timeout_s=args.timeout)

    if args.task:
        try:
            result = client.process_task(
                " ".join(args.task), context=args.context, priority=args.priority
            )
        except ApiError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
        print_task_result(result)
        return 0 if result.get("status") == "success" else 2

    run_repl(client, priority=args.priority)
    return 0


if __name__ == "__main__":
    sys.exit(main())
