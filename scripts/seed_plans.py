import asyncio

from genstudio.plans.catalog import list_plans, seed_plans
from make_admin import service_backend


async def main():
    backend = service_backend()
    created = await seed_plans(backend)
    plans = await list_plans(backend)
    print("Created:", [p["name"] for p in created])
    print("Available plans:", [(p["id"], p["name"], p.get("credit_limit")) for p in plans])


if __name__ == "__main__":
    asyncio.run(main())
