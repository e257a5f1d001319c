from __future__ import annotations

from html import escape


def render_homepage(app_name: str = "assistant-api", version: str = "1.0.0") -> str:
    page = """
<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>Task Assistant</title>
  <link rel="preconnect" href="https://fonts.googleapis.com">
  <link rel="preconnect" href="https://fonts.gstatic.com" crossorigin>
  <link
    href="https://fonts.googleapis.com/css2?family=Space+Grotesk:wght@400;500;700&display=swap"
    rel="stylesheet"
  >
  <link
    href="https://fonts.googleapis.com/css2?family=IBM+Plex+Mono:wght@400;500&display=swap"
    rel="stylesheet"
  >
  <style>
    :root {
      --bg: #f3efe6;
      --panel: #fffaf0;
      --ink: #112433;
      --muted: #5c6b74;
      --accent: #0f8b8d;
      --accent-strong: #136f63;
      --line: #d7d1c3;
      --warn: #b00020;
      --ok: #1d7a46;
    }
    * { box-sizing: border-box; }
    body {
      margin: 0;
      min-height: 100vh;
      font-family: "Space Grotesk", sans-serif;
      color: var(--ink);
      background:
        radial-gradient(circle at 10% 10%, #b6e3df 0%, transparent 45%),
        radial-gradient(circle at 90% 85%, #ffd3a8 0%, transparent 42%),
        var(--bg);
    }
    .layout {
      max-width: 1180px;
      margin: 24px auto;
      padding: 0 16px 24px;
      display: grid;
      grid-template-columns: 300px 1fr;
      gap: 16px;
    }
    .card {
      background: color-mix(in srgb, var(--panel) 88%, white 12%);
      border: 1px solid var(--line);
      border-radius: 16px;
      box-shadow: 0 8px 22px rgba(17, 36, 51, 0.08);
      padding: 16px;
    }
    .sidebar { display: grid; gap: 16px; align-content: start; }
    .title { margin: 0; font-size: 1.4rem; line-height: 1.1; }
    .sub { margin: 6px 0 0; color: var(--muted); font-size: 0.9rem; }
    .pill {
      display: inline-block;
      font-family: "IBM Plex Mono", monospace;
      font-size: 0.78rem;
      border: 1px solid var(--line);
      border-radius: 999px;
      padding: 4px 10px;
      background: #fff;
    }
    .pill.ok { color: var(--ok); }
    .pill.down { color: var(--warn); }
    .stats { display: grid; grid-template-columns: 1fr 1fr 1fr; gap: 8px; margin-top: 10px; }
    .stat { text-align: center; }
    .stat b { display: block; font-size: 1.2rem; }
    .stat span { font-size: 0.72rem; color: var(--muted); }
    .logs { list-style: none; margin: 10px 0 0; padding: 0; max-height: 340px; overflow: auto; }
    .logs li {
      display: flex;
      justify-content: space-between;
      gap: 8px;
      padding: 8px 0;
      border-bottom: 1px dashed var(--line);
      font-size: 0.85rem;
    }
    .logs li small { color: var(--muted); display: block; }
    .chat { display: grid; grid-template-rows: 1fr auto; min-height: 80vh; }
    .messages { overflow: auto; display: grid; gap: 12px; align-content: start; padding-bottom: 12px; }
    .bubble {
      max-width: 82%;
      border-radius: 14px;
      padding: 10px 14px;
      white-space: pre-wrap;
      line-height: 1.42;
    }
    .bubble.user { justify-self: end; background: var(--accent); color: #fff; }
    .bubble.assistant { justify-self: start; background: #fff; border: 1px solid var(--line); }
    .bubble.assistant.error { border-color: var(--warn); }
    .bubble .meta {
      display: block;
      margin-top: 6px;
      font-family: "IBM Plex Mono", monospace;
      font-size: 0.72rem;
      color: var(--muted);
    }
    .typing { color: var(--muted); font-style: italic; }
    label { display: block; margin-bottom: 6px; font-weight: 700; font-size: 0.85rem; }
    textarea, input, select {
      width: 100%;
      border: 1px solid var(--line);
      border-radius: 12px;
      padding: 10px 12px;
      font-family: "IBM Plex Mono", monospace;
      font-size: 0.9rem;
      background: #fff;
      color: var(--ink);
    }
    textarea { min-height: 84px; resize: vertical; }
    .composer { display: grid; grid-template-columns: 1fr 180px; gap: 10px; }
    .row { display: flex; gap: 10px; flex-wrap: wrap; margin-top: 10px; }
    button {
      border: none;
      border-radius: 10px;
      padding: 8px 12px;
      font-family: "Space Grotesk", sans-serif;
      font-weight: 700;
      cursor: pointer;
      transition: transform 120ms ease, opacity 120ms ease;
    }
    button:hover { transform: translateY(-1px); }
    button:disabled { opacity: 0.5; cursor: wait; }
    .primary { background: var(--accent); color: #fff; }
    .secondary { background: #edf6f5; color: var(--accent-strong); }
    .danger { background: #ffe8ec; color: var(--warn); }
    .status { margin: 8px 0 0; font-family: "IBM Plex Mono", monospace; font-size: 0.85rem; }
    .status.error { color: var(--warn); }
    @media (max-width: 860px) {
      .layout { grid-template-columns: 1fr; }
      .composer { grid-template-columns: 1fr; }
    }
  </style>
</head>
<body>
  <main class="layout">
    <aside class="sidebar">
      <section class="card">
        <h1 class="title">Task Assistant</h1>
        <p class="sub">__APP_NAME__ v__VERSION__</p>
        <p><span class="pill" id="connection">checking...</span></p>
      </section>

      <section class="card">
        <label>Statistics</label>
        <div class="stats">
          <div class="stat"><b id="statTotal">-</b><span>Total Tasks</span></div>
          <div class="stat"><b id="statRate">-</b><span>Success Rate</span></div>
          <div class="stat"><b id="statAvg">-</b><span>Avg Time</span></div>
        </div>
        <div class="row">
          <button class="secondary" id="refreshBtn">Refresh</button>
          <button class="danger" id="clearAllBtn">Clear All Logs</button>
        </div>
      </section>

      <section class="card">
        <label>Recent Logs</label>
        <ul class="logs" id="logList"></ul>
      </section>
    </aside>

    <section class="card chat">
      <div class="messages" id="messages"></div>
      <div>
        <div class="composer">
          <div>
            <label for="taskInput">Task</label>
            <textarea id="taskInput" placeholder="Type a task, e.g. analyze leads"></textarea>
          </div>
          <div>
            <label for="priorityInput">Priority</label>
            <select id="priorityInput">
              <option value="low">low</option>
              <option value="medium" selected>medium</option>
              <option value="high">high</option>
            </select>
            <label for="contextInput" style="margin-top: 8px;">Context</label>
            <input id="contextInput" placeholder="optional">
          </div>
        </div>
        <div class="row">
          <button class="primary" id="sendBtn">Send</button>
          <button class="secondary quick" data-task="analyze leads">analyze leads</button>
          <button class="secondary quick" data-task="summarize calls">summarize calls</button>
          <button class="secondary quick" data-task="update client report">update client report</button>
        </div>
        <p class="status" id="statusText">Ready.</p>
      </div>
    </section>
  </main>

  <script>
    const messages = document.getElementById("messages");
    const taskInput = document.getElementById("taskInput");
    const contextInput = document.getElementById("contextInput");
    const priorityInput = document.getElementById("priorityInput");
    const statusText = document.getElementById("statusText");
    const sendBtn = document.getElementById("sendBtn");

    function setStatus(message, isError = false) {
      statusText.textContent = message;
      statusText.classList.toggle("error", isError);
    }

    async function callApi(url, method = "GET", body = undefined) {
      const options = { method, headers: { "Content-Type": "application/json" } };
      if (body !== undefined) {
        options.body = JSON.stringify(body);
      }
      const response = await fetch(url, options);
      const envelope = await response.json();
      if (!response.ok) {
        throw new Error(envelope.error || envelope.message || response.statusText);
      }
      return envelope;
    }

    function addBubble(text, role, extra = {}) {
      const bubble = document.createElement("div");
      bubble.className = `bubble ${role}` + (extra.status === "error" ? " error" : "");
      bubble.textContent = text;
      if (extra.meta) {
        const meta = document.createElement("span");
        meta.className = "meta";
        meta.textContent = extra.meta;
        bubble.appendChild(meta);
      }
      messages.appendChild(bubble);
      messages.scrollTop = messages.scrollHeight;
      return bubble;
    }

    function describe(log) {
      const when = new Date(log.timestamp).toLocaleString();
      return `${log.status.toUpperCase()} | ${log.processingTime}ms | ${when}`;
    }

    async function checkHealth() {
      const pill = document.getElementById("connection");
      try {
        const envelope = await callApi("/health");
        const healthy = envelope.data.status === "healthy";
        pill.textContent = healthy ? "connected" : "unhealthy";
        pill.className = "pill " + (healthy ? "ok" : "down");
      } catch (err) {
        pill.textContent = "disconnected";
        pill.className = "pill down";
      }
    }

    async function loadStats() {
      const envelope = await callApi("/tasks/stats");
      const stats = envelope.data;
      document.getElementById("statTotal").textContent = stats.totalInteractions;
      document.getElementById("statRate").textContent = `${stats.successRate.toFixed(1)}%`;
      document.getElementById("statAvg").textContent = `${stats.averageProcessingTime.toFixed(0)}ms`;
    }

    async function loadLogs() {
      const envelope = await callApi("/tasks/logs?limit=20");
      const list = document.getElementById("logList");
      list.innerHTML = "";
      for (const log of envelope.data) {
        const item = document.createElement("li");
        const label = document.createElement("div");
        label.textContent = log.task;
        const meta = document.createElement("small");
        meta.textContent = describe(log);
        label.appendChild(meta);
        const remove = document.createElement("button");
        remove.className = "danger";
        remove.textContent = "Delete";
        remove.addEventListener("click", async () => {
          try {
            await callApi(`/tasks/logs/${encodeURIComponent(log.id)}`, "DELETE");
            setStatus("Log deleted.");
            await refresh();
          } catch (err) {
            setStatus(String(err.message || err), true);
          }
        });
        item.appendChild(label);
        item.appendChild(remove);
        list.appendChild(item);
      }
      return envelope.data;
    }

    async function refresh() {
      await Promise.all([loadStats(), loadLogs()]);
    }

    async function sendTask(task) {
      const text = task.trim();
      if (!text) {
        setStatus("Task is required.", true);
        return;
      }
      const payload = { task: text, priority: priorityInput.value };
      const context = contextInput.value.trim();
      if (context) {
        payload.context = context;
      }
      addBubble(text, "user");
      const typing = addBubble("Working on it...", "assistant typing");
      sendBtn.disabled = true;
      setStatus("Processing task...");
      try {
        const envelope = await callApi("/tasks/process", "POST", payload);
        const result = envelope.data;
        typing.remove();
        addBubble(result.response, "assistant", { status: result.status, meta: describe(result) });
        setStatus(`Task finished with status: ${result.status}`, result.status === "error");
        taskInput.value = "";
        await refresh();
      } catch (err) {
        typing.remove();
        addBubble("Sorry, I encountered an error while processing your request. Please try again.",
          "assistant", { status: "error" });
        setStatus(String(err.message || err), true);
      } finally {
        sendBtn.disabled = false;
      }
    }

    sendBtn.addEventListener("click", () => sendTask(taskInput.value));
    taskInput.addEventListener("keydown", (event) => {
      if (event.key === "Enter" && !event.shiftKey) {
        event.preventDefault();
        sendTask(taskInput.value);
      }
    });
    for (const button of document.querySelectorAll(".quick")) {
      button.addEventListener("click", () => { taskInput.value = button.dataset.task; });
    }
    document.getElementById("refreshBtn").addEventListener("click", async () => {
      try {
        await refresh();
        setStatus("Refreshed.");
      } catch (err) {
        setStatus(String(err.message || err), true);
      }
    });
    document.getElementById("clearAllBtn").addEventListener("click", async () => {
      if (!confirm("Delete every interaction log? This cannot be undone.")) {
        return;
      }
      try {
        const envelope = await callApi("/tasks/logs", "DELETE");
        messages.innerHTML = "";
        setStatus(envelope.message);
        await refresh();
      } catch (err) {
        setStatus(String(err.message || err), true);
      }
    });

    (async () => {
      await checkHealth();
      try {
        const logs = await loadLogs();
        await loadStats();
        for (const log of [...logs].reverse()) {
          addBubble(log.task, "user");
          addBubble(log.response, "assistant", { status: log.status, meta: describe(log) });
        }
      } catch (err) {
        setStatus(String(err.message || err), true);
      }
    })();
  </script>
</body>
</html>
"""
    return page.replace("__APP_NAME__", escape(app_name)).replace("__VERSION__", escape(version))
