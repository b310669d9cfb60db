# runtime/registries.py
from collections.abc import Callable

from nav_sim.app.protocols import RoutingService
from nav_sim.config.models import RoutingHttpModel, RoutingStaticModel, RoutingUnion
from nav_sim.services.routing import HttpRoutingClient, StaticRoutingService

RoutingFactory = Callable[[RoutingUnion, dict], RoutingService]

_routing_registry: dict[str, RoutingFactory] = {}


# ------------------- Routing services ---------------------------


def register_routing(kind: str):
    def deco(fn: RoutingFactory):
        _routing_registry[kind] = fn
        return fn

    return deco


def make_routing(cfg: RoutingUnion, *, fallback_speed_kmh: float, session=None) -> RoutingService:
    """`session` lets callers hand in a preconfigured requests.Session (auth, retries, tests)."""
    try:
        factory = _routing_registry[cfg.kind]
    except KeyError:
        raise ValueError(f"Unknown routing kind {cfg.kind!r}")
    return factory(cfg, {"fallback_speed_kmh": fallback_speed_kmh, "session": session})


@register_routing("http")
def _make_http(cfg: RoutingHttpModel, deps):
    return HttpRoutingClient(
        cfg.base_url,
        suggest_path=cfg.suggest_path,
        timeout_s=cfg.timeout_s,
        headers=cfg.headers,
        fallback_speed_kmh=deps["fallback_speed_kmh"],
        session=deps["session"],
    )


@register_routing("static")
def _make_static(cfg: RoutingStaticModel, deps):
    return StaticRoutingService(cfg.response, fallback_speed_kmh=deps["fallback_speed_kmh"])
