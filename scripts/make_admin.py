import asyncio
import sys

from genstudio.auth.permissions import ADMIN
from genstudio.backend.client import BackendClient
from genstudio.core.config import get_settings

EMAIL = "admin@example.com"

def service_backend() -> BackendClient:
    settings = get_settings().require_backend()
    # row edits on other accounts need the service key past row-level security
    key = settings.backend_service_key or settings.backend_anon_key
    return BackendClient(settings.backend_url, key)

async def main(email: str):
    backend = service_backend()

    profile = await backend.table("profiles").select("*").eq("email", email).single().execute()
    if not profile:
        raise SystemExit(f"Profile not found: {email}")

    await backend.table("profiles").update({"role": ADMIN}).eq("id", profile["id"]).execute()
    print(f"OK: {email} -> role={ADMIN} (id={profile['id']})")

if __name__ == "__main__":
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else EMAIL))
