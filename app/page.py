"""HTML view for the question form.

The page holds no form logic of its own: it forwards user actions over the
``/ws`` WebSocket and renders every snapshot the server pushes back.
"""

from html import escape
from string import Template

_PAGE = Template(
    """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>$title</title>
  <style>
    body { font-family: system-ui, -apple-system, Segoe UI, Roboto, Arial; margin: 0;
           background: linear-gradient(135deg, #eff6ff, #dbeafe, #ecfeff); min-height: 100vh; }
    main { max-width: 760px; margin: 0 auto; padding: 24px 16px; }
    header { text-align: center; margin-bottom: 24px; }
    header img { width: 80px; vertical-align: middle; }
    h1 { display: inline-block; margin: 0 0 0 12px; vertical-align: middle; color: #111827; }
    .subtitle { color: #4b5563; }
    .warning { color: #d97706; font-weight: 500; }
    .card { background: #fff; border-radius: 16px; box-shadow: 0 10px 25px rgba(0,0,0,.08); padding: 24px; }
    label { display: block; font-size: 14px; font-weight: 500; color: #374151; margin-bottom: 8px; }
    textarea { width: 100%; box-sizing: border-box; padding: 12px 16px; border-radius: 8px;
               border: 2px solid #d1d5db; resize: none; font-size: 15px; }
    textarea.invalid { border-color: #fca5a5; }
    .field-error { color: #ef4444; font-size: 14px; margin-top: 4px; }
    .hints { display: flex; justify-content: space-between; font-size: 12px; color: #6b7280; margin-top: 8px; }
    .hints .near-limit { color: #d97706; font-weight: 500; }
    .actions { display: flex; gap: 12px; margin-top: 20px; }
    button { padding: 12px 24px; border: 0; border-radius: 8px; font-size: 15px; cursor: pointer; }
    button:disabled { opacity: .5; cursor: not-allowed; }
    #ask { flex: 1; background: #2563eb; color: #fff; }
    #clear { background: #f3f4f6; color: #374151; }
    #response-card { margin-top: 32px; padding: 24px; background: #f0fdf4; border: 1px solid #bbf7d0;
                     border-radius: 12px; }
    #response-text { white-space: pre-wrap; color: #374151; font-size: 14px; }
    .disclaimer { margin-top: 16px; padding: 12px; background: #fffbeb; border: 1px solid #fde68a;
                  border-radius: 8px; color: #92400e; font-size: 14px; }
    #toast { position: fixed; top: 16px; right: 16px; padding: 12px 16px; border-radius: 8px;
             color: #fff; font-size: 14px; font-weight: 500; box-shadow: 0 4px 12px rgba(0,0,0,.15); }
    #toast.success { background: #16a34a; }
    #toast.error { background: #dc2626; }
    #toast.loading { background: #2563eb; }
    footer { text-align: center; margin-top: 32px; font-size: 14px; color: #6b7280; }
    [hidden] { display: none !important; }
  </style>
</head>
<body>
  <div id="toast" hidden></div>
  <main>
    <header>
      <img src="https://cdn-icons-png.flaticon.com/128/2779/2779107.png" alt="Logo" />
      <h1>$title</h1>
      <p class="subtitle">Ask medical questions and get AI-powered insights.</p>
      <p class="warning">&#9888;&#65039; Always consult healthcare professionals for medical advice</p>
    </header>

    <section class="card">
      <form id="form">
        <label for="question">What's your medical question?</label>
        <textarea id="question" rows="4" maxlength="$max_length"
                  placeholder="e.g., What are the symptoms of dehydration?"></textarea>
        <div id="field-error" class="field-error" hidden></div>
        <div class="hints">
          <span>Minimum 10 characters</span>
          <span id="counter">0/$max_length</span>
        </div>
        <div class="actions">
          <button id="ask" type="submit" disabled>Ask Question</button>
          <button id="clear" type="button">Clear</button>
        </div>
      </form>

      <div id="response-card" hidden>
        <h3>AI Response</h3>
        <div id="response-text"></div>
        <div class="disclaimer">
          <strong>Disclaimer:</strong> This information is for educational purposes only.
          Always consult a qualified healthcare professional.
        </div>
      </div>
    </section>

    <footer><p>Powered by AI &bull; For informational purposes only</p></footer>
  </main>

  <script>
    const scheme = location.protocol === "https:" ? "wss" : "ws";
    const socket = new WebSocket(scheme + "://" + location.host + "/ws");
    const $$ = (id) => document.getElementById(id);
    const send = (frame) => socket.readyState === WebSocket.OPEN && socket.send(JSON.stringify(frame));

    $$("question").addEventListener("input", (e) => send({ action: "input", question: e.target.value }));
    $$("form").addEventListener("submit", (e) => {
      e.preventDefault();
      send({ action: "submit", online: navigator.onLine });
    });
    $$("clear").addEventListener("click", () => send({ action: "clear" }));
    window.addEventListener("online", () => send({ action: "connectivity", online: true }));
    window.addEventListener("offline", () => send({ action: "connectivity", online: false }));

    socket.addEventListener("message", (event) => {
      const state = JSON.parse(event.data);
      if (state.error) {
        console.error(state);
        return;
      }
      const question = $$("question");
      if (question.value !== state.question) question.value = state.question;
      question.classList.toggle("invalid", Boolean(state.errors.question));

      const fieldError = $$("field-error");
      fieldError.hidden = !state.errors.question;
      fieldError.textContent = state.errors.question || "";

      const counter = $$("counter");
      counter.textContent = state.character_count + "/" + state.max_length;
      counter.classList.toggle("near-limit", state.near_limit);

      $$("ask").disabled = !state.can_submit;
      $$("ask").textContent = state.loading ? "Getting Response..." : "Ask Question";
      $$("clear").disabled = !state.can_clear;

      const toast = $$("toast");
      toast.hidden = !state.notification;
      if (state.notification) {
        toast.className = state.notification.kind;
        toast.textContent = state.notification.message;
      }

      const card = $$("response-card");
      card.hidden = !state.response;
      $$("response-text").textContent = state.response;
      if (state.scroll_to_response) card.scrollIntoView({ behavior: "smooth" });
    });
  </script>
</body>
</html>
"""
)


def render_page(site_title: str, max_length: int) -> str:
    """Render the form page for ``site_title``."""

    return _PAGE.substitute(title=escape(site_title), max_length=max_length)
