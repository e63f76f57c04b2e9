from __future__ import annotations

import html
import json
import math
import urllib.parse
from typing import AsyncIterator, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import HTMLResponse, StreamingResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from docshare.core.database import get_db
from docshare.core.security import verify_link_access_token
from docshare.core.storage import StorageError, StorageProvider, get_storage
from docshare.models.document import Document
from docshare.models.link import Link
from docshare.services.access_gate import get_form_config
from docshare.utils.dates import utcnow
from docshare.utils.validators import EMAIL_PATTERN, valid_email_rule

router = APIRouter(tags=["Access"])

FIELD_LABELS = {"name": "Your name", "email": "Your email", "password": "Link password"}


# -----------------------------
# Helpers
# -----------------------------

def _rfc5987_filename(value: str) -> str:
    quoted = urllib.parse.quote(value, safe="")
    return f'filename="{value.encode("latin-1", "ignore").decode("latin-1")}"; filename*=UTF-8\'\'{quoted}'

def _human_size(n: Optional[int]) -> str:
    if n is None:
        return "unknown"
    units = ["B", "KB", "MB", "GB", "TB"]
    if n == 0:
        return "0 B"
    p = min(int(math.log(n, 1024)), len(units) - 1)
    return f"{n / (1024 ** p):.2f} {units[p]}"

async def _aiter_object(obj) -> AsyncIterator[bytes]:
    try:
        while True:
            chunk = await run_in_threadpool(obj.read, 1024 * 1024)  # 1 MiB
            if not chunk:
                break
            yield chunk
    finally:
        await run_in_threadpool(obj.close)
        release = getattr(obj, "release_conn", None)
        if release is not None:
            await run_in_threadpool(release)


async def _active_link(db: AsyncSession, link_id: str) -> tuple[Link, Document]:
    res = await db.execute(select(Link).where(Link.id == link_id))
    link: Optional[Link] = res.scalars().first()
    if not link:
        raise HTTPException(status_code=404, detail="Link not found")
    if link.is_expired(utcnow()):
        raise HTTPException(status_code=410, detail="Link has expired")

    res = await db.execute(select(Document).where(Document.id == link.document_id))
    document: Optional[Document] = res.scalars().first()
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")
    return link, document


def _client_rules(config) -> dict:
    """Rules the landing page checks before posting, mirroring the gate's form config."""
    rules = {}
    for name, field_rules in config.validation_rules.items():
        entry = {"required": field_rules[0].message}
        if valid_email_rule in field_rules:
            entry["pattern"] = EMAIL_PATTERN.pattern
            entry["patternMessage"] = valid_email_rule.message
        rules[name] = entry
    return rules


def _field_html(name: str) -> str:
    input_type = {"email": "email", "password": "password"}.get(name, "text")
    return (
        f'<label for="{name}">{FIELD_LABELS[name]}</label>'
        f'<input id="{name}" name="{name}" type="{input_type}" autocomplete="off"/>'
        f'<p class="error" id="{name}-error"></p>'
    )


# -----------------------------
# Public landing page for a shared link
# -----------------------------

@router.get("/documentAccess/{link_id}", response_class=HTMLResponse)
async def document_access_page(link_id: str, db: AsyncSession = Depends(get_db)):
    """Shows what was shared and collects the fields the link requires before download."""
    link, document = await _active_link(db, link_id)

    config = get_form_config(link.password_required, link.required_user_details_option)
    fields = "".join(_field_html(name) for name in config.required_fields)
    safe_filename = html.escape(document.file_name or "document")
    title = html.escape(link.friendly_name or document.file_name or "Shared document")
    expires = f" · expires: {link.expiration_time.isoformat()}Z" if link.expiration_time else ""

    html_page = f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>{title}</title>
  <style>
    body {{ margin:0; background:#f4f6f9; color:#1d2430; font-family: ui-sans-serif, system-ui, -apple-system, Segoe UI, Roboto, Helvetica, Arial; }}
    .wrap {{ max-width:520px; margin:0 auto; padding:40px 20px; }}
    .card {{ background:white; border-radius:16px; padding:28px; box-shadow: 0 10px 30px rgba(0,0,0,.08); }}
    h1 {{ font-size:20px; margin:0 0 12px; }}
    label {{ display:block; margin-top:14px; font-weight:600; }}
    input {{ width:100%; box-sizing:border-box; padding:10px; border:1px solid #c9d2de; border-radius:8px; margin-top:6px; }}
    .error {{ color:#c62828; font-size:13px; margin:4px 0 0; min-height:16px; }}
    .meta {{ color:#5b6777; font-size:14px; }}
    .btn {{ margin-top:20px; padding:12px 18px; border-radius:10px; background:#2a7cff; color:white; font-weight:600; border:0; cursor:pointer; }}
    .btn:disabled {{ opacity:.6; cursor:default; }}
  </style>
</head>
<body>
  <div class="wrap">
    <div class="card">
      <h1>A secure document has been shared with you</h1>
      <p><strong>{safe_filename}</strong></p>
      <p class="meta">Size: {_human_size(document.size)}{expires}</p>
      <form id="access">
        {fields}
        <button class="btn" id="submit" type="submit">Access document</button>
        <p class="error" id="status"></p>
      </form>
    </div>
  </div>

  <script>
    const linkId = {json.dumps(link.id)};
    const fields = {json.dumps(list(config.required_fields))};
    const rules = {json.dumps(_client_rules(config))};
    const form = document.getElementById('access');
    form.addEventListener('submit', async (event) => {{
      event.preventDefault();
      let valid = true;
      for (const name of fields) {{
        const value = document.getElementById(name).value.trim();
        const rule = rules[name];
        let error = '';
        if (!value) error = rule.required;
        else if (rule.pattern && !new RegExp(rule.pattern).test(value)) error = rule.patternMessage;
        document.getElementById(name + '-error').textContent = error;
        if (error) valid = false;
      }}
      if (!valid) return;
      const value = (name) => fields.includes(name) ? document.getElementById(name).value.trim() : '';
      const [first, ...rest] = value('name').split(/\\s+/).filter(Boolean);
      const button = document.getElementById('submit');
      button.disabled = true;
      try {{
        const res = await fetch('/api/links/shared_access', {{
          method: 'POST',
          headers: {{ 'Content-Type': 'application/json' }},
          body: JSON.stringify({{ linkId, first_name: first || '', last_name: rest.join(' '),
                                  email: value('email'), password: fields.includes('password') ? document.getElementById('password').value : '' }}),
        }});
        const body = await res.json();
        if (!res.ok || !body.data) throw new Error(body.message || 'Unexpected error occurred while accessing the link.');
        window.location.href = body.data.downloadUrl;
      }} catch (e) {{
        document.getElementById('status').textContent = e.message;
      }} finally {{
        button.disabled = false;
      }}
    }});
  </script>
</body>
</html>"""
    return HTMLResponse(html_page, headers={"Cache-Control": "no-store"})


# -----------------------------
# Download for a verified visitor (streams the object)
# -----------------------------

@router.get("/api/links/{link_id}/download")
async def download_shared_document(
    link_id: str,
    token: str = Query(...),
    db: AsyncSession = Depends(get_db),
    storage: StorageProvider = Depends(get_storage),
):
    if not verify_link_access_token(token, link_id):
        raise HTTPException(status_code=403, detail="Invalid or expired download token")

    _, document = await _active_link(db, link_id)

    try:
        size = await run_in_threadpool(storage.size, document.file_path)
    except StorageError:
        raise HTTPException(status_code=404, detail="File not found in storage")

    try:
        obj = await run_in_threadpool(storage.open, document.file_path)
    except StorageError:
        raise HTTPException(status_code=500, detail="Storage is temporarily unavailable")

    headers = {
        "Content-Disposition": f'attachment; {_rfc5987_filename(document.file_name or "download.bin")}',
        "Content-Length": str(size),
        "Cache-Control": "no-store",
    }
    return StreamingResponse(
        _aiter_object(obj),
        media_type=document.file_type or "application/octet-stream",
        headers=headers,
    )
