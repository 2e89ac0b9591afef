from typing import Annotated

from fastapi import Depends, Header

from relief_stock.core.exceptions import AuthenticationError

ACTOR_HEADER = "X-Actor-Id"


async def get_current_actor(
    x_actor_id: Annotated[str | None, Header(alias=ACTOR_HEADER)] = None,
) -> str:
    """
    Dependency returning the caller identity set by the upstream identity layer.

    Authentication and role checks happen before requests reach this service;
    the value is trusted as-is and only recorded on audit rows.

    Usage:
        @router.post("/changes")
        async def apply_change(actor_id: CurrentActor):
            ...
    """
    actor_id = (x_actor_id or "").strip()
    if not actor_id:
        raise AuthenticationError(f"{ACTOR_HEADER} header required")
    return actor_id


CurrentActor = Annotated[str, Depends(get_current_actor)]
