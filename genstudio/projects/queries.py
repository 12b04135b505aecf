from genstudio.core.timeutil import iso, utcnow
from genstudio.projects.expiry import active_only


async def create_project(backend, *, user_id: str, kind: str, prompt: str, url: str, expires_at) -> list[dict]:
    return await backend.table("projects").insert(
        {
            "user_id": user_id,
            "type": kind,
            "prompt": prompt,
            "url": url,
            "thumbnail_url": url,
            "expires_at": iso(expires_at),
        }
    ).execute()


async def list_projects(
    backend, user_id: str, *, include_expired: bool = False, limit: int | None = None, now=None
) -> list[dict]:
    now = now or utcnow()
    q = backend.table("projects").select("*").eq("user_id", user_id)
    if not include_expired:
        q = q.gt("expires_at", iso(now))
    q = q.order("created_at", desc=True)
    if limit is not None:
        q = q.limit(limit)
    rows = await q.execute()
    if include_expired:
        return rows
    return active_only(rows, now)
