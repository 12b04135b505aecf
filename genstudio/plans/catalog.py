from genstudio.core.errors import NotFound

IMAGE = "image"
VIDEO = "video"

# credits debited per generation, whatever the duration/resolution
CREDIT_COSTS = {
    IMAGE: 1,
    VIDEO: 5,
}

FREE = dict(
    name="Free",
    credit_limit=5,
)

PRO = dict(
    name="Pro",
    credit_limit=500,
)

ENTERPRISE = dict(
    name="Enterprise",
    credit_limit=10000,
)

PLANS = (FREE, PRO, ENTERPRISE)

FREE_PLAN_NAME = FREE["name"]

# Free accounts start from this prompt ("trial mode")
TRIAL_PROMPT = "a beautiful cat walking in a garden"

DURATIONS = ("5s", "10s", "15s", "20s")
RESOLUTIONS = ("480p", "720p", "1080p")
VIDEO_SUB_KINDS = ("text-to-video", "image-to-video")
DEFAULT_DURATION = "5s"
DEFAULT_RESOLUTION = "1080p"


def credit_cost(kind: str) -> int:
    try:
        return CREDIT_COSTS[kind]
    except KeyError:
        raise ValueError(f"Unknown generation kind: {kind!r}") from None


def default_credits(plan: dict) -> int:
    """
    Balance a subscription is reset to when it moves onto ``plan``.
    The plan row's credit_limit wins; known plan names fall back to the table above.
    """
    if plan.get("credit_limit") is not None:
        return int(plan["credit_limit"])
    for p in PLANS:
        if p["name"] == plan.get("name"):
            return p["credit_limit"]
    return 0


async def list_plans(backend) -> list[dict]:
    return await backend.table("plans").select("*").order("credit_limit").execute()


async def get_plan(backend, plan_id) -> dict:
    plan = await backend.table("plans").select("*").eq("id", plan_id).single().execute()
    if not plan:
        raise NotFound("Plan not found")
    return plan


async def get_plan_by_name(backend, name: str) -> dict:
    plan = await backend.table("plans").select("*").eq("name", name).single().execute()
    if not plan:
        raise NotFound(f"{name} plan not found in database")
    return plan


async def seed_plans(backend) -> list[dict]:
    created = []
    for p in PLANS:
        exists = await backend.table("plans").select("id").eq("name", p["name"]).single().execute()
        if not exists:
            created.extend(await backend.table("plans").insert(dict(p)).execute())
    return created
