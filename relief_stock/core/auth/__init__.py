from relief_stock.core.auth.dependencies import CurrentActor, get_current_actor

__all__ = ["CurrentActor", "get_current_actor"]
