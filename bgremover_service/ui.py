"""Single-page browser front end served at `/`."""

INDEX_HTML = """<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>AI Background Remover</title>
<style>
  body { font-family: sans-serif; max-width: 56rem; margin: 2rem auto; text-align: center; }
  #drop { border: 2px dashed #888; padding: 2rem; border-radius: 1rem; }
  #drop.over { border-color: #6366f1; }
  img { max-height: 24rem; max-width: 100%; }
  .checkered { background: repeating-conic-gradient(#ccc 0 25%, #fff 0 50%) 0 0 / 20px 20px; }
  .hidden { display: none; }
  .error { color: #b91c1c; }
</style>
</head>
<body>
<h1>AI Background Remover</h1>
<p>Upload an image to remove its background.</p>

<div id="initial">
  <div id="drop">
    <p>Drag &amp; drop your image here, or</p>
    <input id="file" type="file" accept="image/*">
  </div>
</div>

<div id="loading" class="hidden">
  <img id="loading-preview" alt="Uploading">
  <p>Processing image...</p>
</div>

<div id="result" class="hidden">
  <img id="original" alt="Original">
  <div class="checkered"><img id="processed" alt="Processed"></div>
  <p><a id="download">Download</a> <button class="reset">Try another</button></p>
</div>

<div id="error" class="hidden">
  <h2 class="error">An Error Occurred</h2>
  <p id="error-message"></p>
  <button class="reset">Try again</button>
</div>

<script>
let sessionId = null;
let polling = null;

function show(snapshot) {
  for (const id of ["initial", "loading", "result", "error"]) {
    document.getElementById(id).classList.toggle("hidden", id !== snapshot.state);
  }
  if (snapshot.state === "loading") {
    document.getElementById("loading-preview").src = snapshot.previewUrl || "";
  } else if (snapshot.state === "result") {
    document.getElementById("original").src = snapshot.previewUrl;
    document.getElementById("processed").src = snapshot.resultUrl;
    document.getElementById("download").href = snapshot.resultUrl;
  } else if (snapshot.state === "error") {
    document.getElementById("error-message").textContent = snapshot.error;
  }
  clearTimeout(polling);
  if (snapshot.state === "loading") {
    polling = setTimeout(refresh, 1000);
  }
}

async function startSession() {
  const resp = await fetch("/sessions", { method: "POST" });
  const snapshot = await resp.json();
  sessionId = snapshot.id;
  return snapshot;
}

async function handle(resp) {
  if (resp.ok) {
    show(await resp.json());
    return;
  }
  let detail = `Request failed (${resp.status}).`;
  try {
    detail = (await resp.json()).detail || detail;
  } catch (err) {
    // non-JSON error body
  }
  if (resp.status === 404) {
    // Session expired or the server restarted.
    await startSession();
  }
  show({ state: "error", error: detail });
}

async function refresh() {
  await handle(await fetch(`/sessions/${sessionId}`));
}

async function submit(file) {
  const body = new FormData();
  body.append("file", file);
  await handle(await fetch(`/sessions/${sessionId}/image`, { method: "POST", body }));
}

async function reset() {
  document.getElementById("file").value = "";
  const resp = await fetch(`/sessions/${sessionId}/reset`, { method: "POST" });
  if (resp.status === 404) {
    show(await startSession());
    return;
  }
  await handle(resp);
}

const drop = document.getElementById("drop");
drop.addEventListener("dragover", (e) => { e.preventDefault(); });
drop.addEventListener("dragenter", (e) => { e.preventDefault(); drop.classList.add("over"); });
drop.addEventListener("dragleave", () => drop.classList.remove("over"));
drop.addEventListener("drop", (e) => {
  e.preventDefault();
  drop.classList.remove("over");
  const file = e.dataTransfer.files[0];
  if (file && file.type.startsWith("image/")) {
    submit(file);
  }
});
document.getElementById("file").addEventListener("change", (e) => {
  if (e.target.files[0]) {
    submit(e.target.files[0]);
  }
});
for (const button of document.querySelectorAll(".reset")) {
  button.addEventListener("click", reset);
}
window.addEventListener("pagehide", () => {
  if (sessionId) {
    fetch(`/sessions/${sessionId}`, { method: "DELETE", keepalive: true });
  }
});

startSession().then(show);
</script>
</body>
</html>
"""
